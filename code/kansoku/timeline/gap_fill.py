"""Borrow damage figures across occurrences of the same ability.

An occurrence that never matched in any report (e.g. a late-fight cast few
logs reached) takes the median of its sibling occurrences' totals. Each
sibling counts once per report that supported it, and at least two points of
evidence are required.

Only the damage fields and a "low" importance are updated; icon, description
and tank-buster flags keep the values computed without damage.
"""

import logging
from statistics import median

from kansoku.timeline.keys import normalize_base_name
from kansoku.timeline.models import FinalAction

logger = logging.getLogger(__name__)

# Counted in supporting reports, not donors: one donor seen in two reports
# fills the gap, one donor seen in a single report does not. Switching to a
# per-donor count would leave the single-donor Big Bang case unfilled.
MIN_EVIDENCE = 2


def donor_total(action: FinalAction) -> int | None:
    """An action's damage on a total (all hits) per-player basis."""
    if action.per_hit_damage is not None and action.hit_count:
        return action.per_hit_damage * action.hit_count
    return action.unmitigated_damage


def fill_gaps(actions: list[FinalAction]) -> list[FinalAction]:
    """Fill missing damage in place and return the same list.

    Donors are read from the pre-fill state, so filled actions never feed
    other fills.
    """
    by_base: dict[str, list[tuple[FinalAction, int]]] = {}
    for action in actions:
        total = donor_total(action)
        if total is not None:
            by_base.setdefault(normalize_base_name(action.name), []).append(
                (action, total)
            )

    filled = 0
    for action in actions:
        if action.unmitigated_damage is not None:
            continue
        donors = [
            (donor, total)
            for donor, total in by_base.get(normalize_base_name(action.name), [])
            if donor is not action
        ]
        evidence = [
            total
            for donor, total in donors
            for _ in range(max(donor.sample_count, 1))
        ]
        if len(evidence) < MIN_EVIDENCE:
            continue

        total = median(evidence)
        action.unmitigated_damage = round(total)
        if action.hit_count:
            action.per_hit_damage = round(total / action.hit_count)
        if action.importance == "low":
            action.importance = "medium"
        action.gap_filled = True
        filled += 1
        logger.debug(
            "Gap-filled %s with %d from %d donors",
            action.id, action.unmitigated_damage, len(donors),
        )

    if filled:
        logger.info("Gap-filled damage for %d actions", filled)
    return actions
