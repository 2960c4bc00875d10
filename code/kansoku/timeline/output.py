"""Timeline artifact serialization.

Only ``id``, ``name`` and ``time`` are always written. Every other field is
omitted when unknown (never null or empty), and flags only appear when true.
"""

import json
import logging
from pathlib import Path

from kansoku.timeline.models import FinalAction

logger = logging.getLogger(__name__)


def format_damage_value(value: int) -> str:
    """``~100,000`` style figure; values below 1,000 are written as-is."""
    if value < 1000:
        return str(value)
    return f"~{value:,}"


def serialize_action(action: FinalAction) -> dict:
    time = int(action.time) if float(action.time).is_integer() else action.time
    data: dict = {"id": action.id, "name": action.name, "time": time}
    if action.description:
        data["description"] = action.description
    if action.unmitigated_damage:
        data["unmitigatedDamage"] = format_damage_value(action.unmitigated_damage)
    if action.per_hit_damage:
        data["perHitDamage"] = format_damage_value(action.per_hit_damage)
    if action.hit_count:
        data["hitCount"] = action.hit_count
    if action.damage_type:
        data["damageType"] = action.damage_type
    if action.importance:
        data["importance"] = action.importance
    if action.icon:
        data["icon"] = action.icon
    if action.is_tank_buster:
        data["isTankBuster"] = True
    if action.is_dual_tank_buster:
        data["isDualTankBuster"] = True
    return data


def render_timeline(actions: list[FinalAction], indent: int = 2) -> str:
    payload = [serialize_action(a) for a in actions]
    return json.dumps(payload, indent=indent, ensure_ascii=False) + "\n"


def write_timeline(
    actions: list[FinalAction], path: str | Path, indent: int = 2,
) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_timeline(actions, indent), encoding="utf-8")
    logger.info("Wrote %d actions to %s", len(actions), path)
    return path
