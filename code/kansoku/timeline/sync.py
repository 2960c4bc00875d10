"""Clock alignment between a report and the canonical timeline."""

import logging
from dataclasses import replace

from kansoku.timeline.keys import match_name, normalize_base_name
from kansoku.timeline.models import CanonicalAction, CombatEvent, SyncResult

logger = logging.getLogger(__name__)


class ReportSyncError(Exception):
    """The reference action could not be located in a report."""


def build_ability_lookup(abilities) -> dict[int, str]:
    """Map ability game id -> name from report master data."""
    return {a.game_id: a.name for a in abilities if a.name}


def enrich_events(
    events: list[CombatEvent], lookup: dict[int, str],
) -> list[CombatEvent]:
    """Fill in ability names the event stream left out."""
    enriched = []
    for event in events:
        if not event.ability_name and event.ability_id in lookup:
            event = replace(event, ability_name=lookup[event.ability_id])
        enriched.append(event)
    return enriched


def event_matches(
    action: CanonicalAction, event: CombatEvent, name: str | None = None,
) -> bool:
    """Whether a combat event is an instance of a canonical action.

    Identifier match wins when the action carries ability ids; otherwise
    names are compared on their alphanumeric base form.
    """
    if action.ability_ids and event.ability_id in action.ability_ids:
        return True
    if not event.ability_name:
        return False
    return match_name(event.ability_name) == (name or match_name(action.name))


def pick_reference_action(
    actions: list[CanonicalAction], preferred: str | None = None,
) -> CanonicalAction | None:
    ordered = sorted(actions, key=lambda a: a.time)
    if not ordered:
        return None
    if preferred:
        wanted = normalize_base_name(preferred)
        for action in ordered:
            if normalize_base_name(action.name) == wanted:
                return action
        logger.debug(
            "Reference action %r not in timeline, using %r",
            preferred, ordered[0].name,
        )
    return ordered[0]


def find_sync_reference(
    actions: list[CanonicalAction],
    events: list[CombatEvent],
    fight_duration_ms: int,
    reference_action: str | None = None,
) -> SyncResult:
    """Find the first event of the reference action and derive the offset.

    ``offset_seconds`` is ``event_time - nominal_time``, so a canonical time
    projects onto the report clock as ``nominal + offset``.
    """
    reference = pick_reference_action(actions, reference_action)
    if reference is None:
        return SyncResult(found=False)

    target = match_name(reference.name)
    candidates = [
        e for e in events
        if 0 <= e.timestamp_ms <= fight_duration_ms
        and event_matches(reference, e, target)
    ]
    if not candidates:
        return SyncResult(found=False, reference_action=reference.name)

    first = min(candidates, key=lambda e: e.timestamp_ms)
    offset = round(first.timestamp_ms / 1000 - reference.time, 3)
    return SyncResult(
        found=True,
        offset_seconds=offset,
        matched_timestamp_ms=first.timestamp_ms,
        reference_action=reference.name,
    )
