"""Cross-report aggregation of damage mappings into per-action statistics.

The aggregation state is immutable. ``merge`` folds one report in and
``combine`` joins two partial states; both are commutative and associative,
so reports can be processed in any order or in parallel and reduced later.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from statistics import mean
from statistics import median as _median

from kansoku.config import SyncConfig
from kansoku.timeline.keys import assign_action_keys, normalize_base_name
from kansoku.timeline.models import CanonicalAction, DamageMapping, HitRateResult

logger = logging.getLogger(__name__)


def median(values) -> float | None:
    values = list(values)
    return _median(values) if values else None


@dataclass(frozen=True)
class Observation:
    """One report's matched occurrence of an action."""

    report_code: str
    damage: int
    damage_type: str | None = None
    target_count: int | None = None
    hit_count: int | None = None

    def sort_key(self) -> tuple:
        return (
            self.report_code, self.damage, self.damage_type or "",
            self.target_count or 0, self.hit_count or 0,
        )


@dataclass(frozen=True)
class ActionStatistics:
    """Aggregation bucket for one ActionKey.

    Observations are held as a set and read back in report-code order, so the
    derived lists never depend on merge order.
    """

    observations: frozenset[Observation] = frozenset()

    def with_observation(self, observation: Observation) -> "ActionStatistics":
        return ActionStatistics(self.observations | {observation})

    def union(self, other: "ActionStatistics") -> "ActionStatistics":
        return ActionStatistics(self.observations | other.observations)

    @property
    def ordered(self) -> list[Observation]:
        return sorted(self.observations, key=Observation.sort_key)

    @property
    def matched_reports(self) -> int:
        return len({o.report_code for o in self.observations})

    @property
    def damage_values(self) -> list[int]:
        return [o.damage for o in self.ordered]

    @property
    def damage_types(self) -> list[str]:
        return [o.damage_type for o in self.ordered if o.damage_type]

    @property
    def target_counts(self) -> list[int]:
        return [o.target_count for o in self.ordered if o.target_count]

    @property
    def hit_counts(self) -> list[int]:
        return [o.hit_count for o in self.ordered if o.hit_count]

    def hits_per_target(self) -> list[float]:
        return [
            o.hit_count / o.target_count for o in self.ordered
            if o.hit_count and o.target_count
        ]

    def damage_per_target(self) -> list[float]:
        return [
            o.damage / o.target_count for o in self.ordered if o.target_count
        ]


@dataclass(frozen=True)
class AggregationState:
    reports: frozenset[str] = frozenset()
    buckets: dict[str, ActionStatistics] = field(default_factory=dict)

    def bucket(self, action_key: str) -> ActionStatistics:
        return self.buckets.get(action_key, ActionStatistics())


def merge(
    state: AggregationState,
    report_code: str,
    mappings: list[DamageMapping],
) -> AggregationState:
    """Fold one processed report into the state.

    The report counts towards ``total_reports`` even when nothing matched.
    Unmatched mappings contribute nothing else.
    """
    buckets = dict(state.buckets)
    for mapping in mappings:
        if not mapping.matched or mapping.damage is None:
            continue
        observation = Observation(
            report_code=report_code,
            damage=mapping.damage,
            damage_type=mapping.damage_type,
            target_count=mapping.target_count,
            hit_count=mapping.hit_count,
        )
        buckets[mapping.action_key] = (
            buckets.get(mapping.action_key, ActionStatistics())
            .with_observation(observation)
        )
    return AggregationState(reports=state.reports | {report_code}, buckets=buckets)


def combine(a: AggregationState, b: AggregationState) -> AggregationState:
    buckets = dict(a.buckets)
    for key, stats in b.buckets.items():
        buckets[key] = buckets[key].union(stats) if key in buckets else stats
    return AggregationState(reports=a.reports | b.reports, buckets=buckets)


def vote_damage_type(damage_types: list[str]) -> str | None:
    """Majority damage type; ties go to the value seen first."""
    if not damage_types:
        return None
    counts = Counter(damage_types)
    best = max(counts.values())
    return next(t for t in damage_types if counts[t] == best)


def analyze_hit_rates(
    actions: list[CanonicalAction],
    state: AggregationState,
    config: SyncConfig,
) -> list[HitRateResult]:
    """Derive a HitRateResult for every canonical action, in time order."""
    total = len(state.reports)
    min_reports = config.min_reports_for_confidence
    if min_reports is None:
        min_reports = min(3, total)
    never_dodgeable = {normalize_base_name(n) for n in config.never_dodgeable}

    results = []
    for keyed in assign_action_keys(actions):
        stats = state.bucket(keyed.key)
        matched = stats.matched_reports
        exact = matched / total if total else 0.0
        hit_rate = round(exact, 2)
        is_dodgeable = (
            total > 0
            and total >= min_reports
            and exact < config.dodgeable_threshold
            and keyed.base_name not in never_dodgeable
        )

        hits_per_target = median(stats.hits_per_target())
        damage_per_target = stats.damage_per_target()
        results.append(HitRateResult(
            action_key=keyed.key,
            name=keyed.name,
            occurrence=keyed.occurrence,
            time=keyed.time,
            matched_reports=matched,
            total_reports=total,
            hit_rate=hit_rate,
            is_dodgeable=is_dodgeable,
            representative_damage=median(stats.damage_values),
            median_target_count=median(stats.target_counts),
            hits_per_target=round(hits_per_target) if hits_per_target else None,
            average_damage_per_target=(
                mean(damage_per_target) if damage_per_target else None
            ),
            damage_type=vote_damage_type(stats.damage_types),
            exact_hit_rate=exact,
        ))
        logger.debug(
            "%s: %d/%d reports (%.0f%%)%s",
            keyed.key, matched, total, hit_rate * 100,
            " dodgeable" if is_dodgeable else "",
        )
    return results


HIT_RATE_BUCKETS = (
    ("100%", 1.0, 1.0),
    ("80-99%", 0.8, 0.99),
    ("50-79%", 0.5, 0.79),
    ("20-49%", 0.2, 0.49),
    ("<20%", 0.0, 0.19),
)


def summarize_hit_rates(results: list[HitRateResult]) -> str:
    """Human-readable hit-rate breakdown for CLI output."""
    if not results:
        return "No actions analyzed"

    total = len(results)
    dodgeable = sum(1 for r in results if r.is_dodgeable)
    average = sum(r.hit_rate for r in results) / total
    lines = [
        "=== Hit Rate Analysis Summary ===",
        f"Total actions analyzed: {total}",
        f"Unavoidable (hit rate >= threshold): {total - dodgeable}",
        f"Dodgeable (hit rate < threshold): {dodgeable}",
        f"Average hit rate: {round(average * 100)}%",
        "",
        "Actions by hit rate:",
    ]
    for label, low, high in HIT_RATE_BUCKETS:
        count = sum(1 for r in results if low <= r.hit_rate <= high)
        if count:
            lines.append(f"  {label}: {count} actions")
    return "\n".join(lines)
