"""Canonical timeline providers.

A canonical timeline is the hand-maintained list of boss actions with their
nominal (script) times. Providers only load it; they never interpret it.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from kansoku.timeline.models import CanonicalAction

logger = logging.getLogger(__name__)


@dataclass
class TimelineLoadResult:
    """Outcome of a timeline load.

    ``available=False`` means the timeline could not be loaded at all, which
    callers must treat differently from an available but empty timeline.
    """

    available: bool
    actions: list[CanonicalAction] = field(default_factory=list)
    error: str | None = None


class TimelineProvider(Protocol):
    def load(self, boss_id: str) -> TimelineLoadResult: ...


def parse_canonical_actions(raw) -> list[CanonicalAction]:
    """Build CanonicalActions from decoded JSON.

    Accepts either a bare list of ``{"name", "time"}`` entries or an object
    with an ``actions`` list. ``abilityIds`` (or a single ``abilityId``) is
    optional on each entry.
    """
    if isinstance(raw, dict):
        raw = raw.get("actions")
    if not isinstance(raw, list):
        raise ValueError("expected a list of actions or an object with 'actions'")

    actions = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValueError(f"action {i} is not an object")
        try:
            name = str(entry["name"])
            time = float(entry["time"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"action {i} needs a name and a numeric time") from exc

        ids = entry.get("abilityIds")
        if ids is None and entry.get("abilityId") is not None:
            ids = [entry["abilityId"]]
        actions.append(CanonicalAction(
            name=name,
            time=time,
            ability_ids=tuple(int(x) for x in ids or ()),
        ))
    return actions


class JsonTimelineProvider:
    """Reads ``<directory>/<boss_id>.json``."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    def path_for(self, boss_id: str) -> Path:
        return self._directory / f"{boss_id}.json"

    def load(self, boss_id: str) -> TimelineLoadResult:
        path = self.path_for(boss_id)
        if not path.is_file():
            return TimelineLoadResult(
                available=False, error=f"No canonical timeline at {path}",
            )
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            actions = parse_canonical_actions(raw)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load canonical timeline %s: %s", path, exc)
            return TimelineLoadResult(
                available=False, error=f"Invalid canonical timeline {path}: {exc}",
            )

        logger.info("Loaded %d canonical actions from %s", len(actions), path)
        return TimelineLoadResult(available=True, actions=actions)


class StaticTimelineProvider:
    """In-memory provider, keyed by boss id."""

    def __init__(self, timelines: dict[str, list[CanonicalAction]]) -> None:
        self._timelines = timelines

    def load(self, boss_id: str) -> TimelineLoadResult:
        if boss_id not in self._timelines:
            return TimelineLoadResult(
                available=False, error=f"No canonical timeline for {boss_id}",
            )
        return TimelineLoadResult(
            available=True, actions=list(self._timelines[boss_id]),
        )
