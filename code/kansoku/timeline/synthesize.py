"""Turn aggregated hit-rate statistics into the final timeline actions."""

import logging
from dataclasses import replace

from kansoku.config import SyncConfig
from kansoku.timeline import classify
from kansoku.timeline.keys import multi_hit_count, normalize_base_name, slugify
from kansoku.timeline.models import FinalAction, HitRateResult

logger = logging.getLogger(__name__)


def resolve_hit_count(result: HitRateResult, multi_hit_names: set[str]) -> int | None:
    """Hit count for multi-hit actions, None for single hits.

    An explicit " xN" suffix wins. Abilities on the multi-hit list use the
    observed hits per target when that is above one.
    """
    explicit = multi_hit_count(result.name)
    if explicit:
        return explicit
    base = normalize_base_name(result.name)
    if any(name in base for name in multi_hit_names):
        if result.hits_per_target and result.hits_per_target > 1:
            return result.hits_per_target
    return None


def unique_id(name: str, occurrence: int, taken: set[str]) -> str:
    base = f"{slugify(name)}_{occurrence}"
    candidate = base
    suffix = 2
    while candidate in taken:
        candidate = f"{base}_{suffix}"
        suffix += 1
    taken.add(candidate)
    return candidate


def synthesize_action(
    result: HitRateResult,
    config: SyncConfig,
    multi_hit_names: set[str],
    taken_ids: set[str],
) -> FinalAction:
    hit_count = resolve_hit_count(result, multi_hit_names)

    per_player = None
    if result.representative_damage is not None:
        targets = result.median_target_count or config.default_target_count
        per_player = result.representative_damage / targets
    per_hit = (
        round(per_player / hit_count) if per_player is not None and hit_count else None
    )

    profile = classify.MechanicProfile(
        name=result.name,
        hit_rate=result.threshold_hit_rate,
        per_player_damage=per_player,
        median_target_count=result.median_target_count,
        average_damage_per_target=result.average_damage_per_target,
        hit_count=hit_count,
        per_hit_damage=per_hit,
        damage_type=result.damage_type,
    )
    profile = replace(profile, is_tank_buster=classify.is_tank_buster(profile, config))
    profile = replace(
        profile, is_dual_tank_buster=classify.is_dual_tank_buster(profile, config),
    )

    return FinalAction(
        id=unique_id(result.name, result.occurrence, taken_ids),
        name=result.name,
        time=result.time,
        importance=classify.classify_importance(profile, config),
        icon=classify.select_icon(profile, config),
        description=classify.describe(profile, config),
        unmitigated_damage=round(per_player) if per_player is not None else None,
        per_hit_damage=per_hit,
        hit_count=hit_count,
        damage_type=result.damage_type,
        is_tank_buster=profile.is_tank_buster,
        is_dual_tank_buster=profile.is_dual_tank_buster,
        sample_count=result.matched_reports,
    )


def build_final_timeline(
    hit_rates: list[HitRateResult], config: SyncConfig,
) -> list[FinalAction]:
    """One FinalAction per canonical action, in canonical time order.

    Dodgeable actions are dropped only when ``include_dodgeable`` is off.
    """
    multi_hit_names = {normalize_base_name(n) for n in config.multi_hit_abilities}
    taken_ids: set[str] = set()
    actions = []
    for result in sorted(hit_rates, key=lambda r: r.time):
        if result.is_dodgeable and not config.include_dodgeable:
            logger.debug("Dropping dodgeable action %s", result.action_key)
            continue
        actions.append(synthesize_action(result, config, multi_hit_names, taken_ids))
    return actions
