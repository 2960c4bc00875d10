"""Assign combat-log events to canonical action occurrences for one report."""

import logging
from dataclasses import dataclass
from statistics import median

from kansoku.config import SyncConfig
from kansoku.timeline.classify import infer_damage_type
from kansoku.timeline.keys import assign_action_keys, match_name
from kansoku.timeline.models import CanonicalAction, CombatEvent, DamageMapping
from kansoku.timeline.sync import event_matches

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OccurrenceGroup:
    """Events of one ability close enough in time to be a single cast."""

    events: tuple[CombatEvent, ...]
    median_time: float  # seconds, report clock


def group_into_occurrences(
    events: list[CombatEvent], gap_sec: float,
) -> list[OccurrenceGroup]:
    """Split time-sorted events wherever consecutive hits are > gap_sec apart."""
    ordered = sorted(events, key=lambda e: e.timestamp_ms)
    groups: list[OccurrenceGroup] = []
    current: list[CombatEvent] = []
    for event in ordered:
        if current and (event.timestamp_ms - current[-1].timestamp_ms) / 1000 > gap_sec:
            groups.append(_make_group(current))
            current = []
        current.append(event)
    if current:
        groups.append(_make_group(current))
    return groups


def _make_group(events: list[CombatEvent]) -> OccurrenceGroup:
    return OccurrenceGroup(
        events=tuple(events),
        median_time=median(e.timestamp_ms for e in events) / 1000,
    )


def map_damage_to_actions(
    report_code: str,
    actions: list[CanonicalAction],
    events: list[CombatEvent],
    offset_seconds: float,
    config: SyncConfig,
) -> list[DamageMapping]:
    """Produce one DamageMapping per canonical action, in time order.

    Each occurrence takes the closest unused event group of its ability whose
    median time lies within ``match_window_sec`` of ``nominal + offset``.
    Equal distances go to the earlier group. A group whose total damage is
    zero (fully avoided or absorbed) counts as a miss.
    """
    groups_by_ability: dict[tuple, list[OccurrenceGroup]] = {}
    used: dict[tuple, set[int]] = {}
    mappings: list[DamageMapping] = []

    for keyed in assign_action_keys(actions):
        name = match_name(keyed.name)
        ability = (name, keyed.action.ability_ids)
        if ability not in groups_by_ability:
            matching = [e for e in events if event_matches(keyed.action, e, name)]
            groups_by_ability[ability] = group_into_occurrences(
                matching, config.occurrence_gap_sec,
            )
        groups = groups_by_ability[ability]
        taken = used.setdefault(ability, set())

        expected = keyed.time + offset_seconds
        best_index: int | None = None
        best_diff = config.match_window_sec
        for i, group in enumerate(groups):
            if i in taken:
                continue
            diff = abs(group.median_time - expected)
            if diff < best_diff or (best_index is None and diff == best_diff):
                best_index, best_diff = i, diff

        if best_index is None:
            mappings.append(DamageMapping(report_code, keyed.key, matched=False))
            continue

        taken.add(best_index)
        group = groups[best_index]
        damage = sum(e.amount for e in group.events)
        if damage <= 0:
            logger.debug(
                "%s: %s matched at %.1fs with no damage",
                report_code, keyed.key, group.median_time,
            )
            mappings.append(DamageMapping(report_code, keyed.key, matched=False))
            continue

        first = group.events[0]
        mappings.append(DamageMapping(
            report_code=report_code,
            action_key=keyed.key,
            matched=True,
            damage=damage,
            damage_type=first.damage_type or infer_damage_type(
                first.ability_name or keyed.name
            ),
            target_count=len({e.target_id for e in group.events}),
            hit_count=len(group.events),
            matched_time=group.median_time,
        ))

    matched = sum(1 for m in mappings if m.matched)
    logger.debug(
        "%s: matched %d of %d actions", report_code, matched, len(mappings),
    )
    return mappings
