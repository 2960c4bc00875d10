"""Domain records passed between the timeline pipeline stages."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CanonicalAction:
    name: str
    time: float  # seconds, canonical clock
    ability_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class KeyedAction:
    """A canonical action with its derived ActionKey and occurrence index."""

    action: CanonicalAction
    key: str
    base_name: str
    occurrence: int

    @property
    def name(self) -> str:
        return self.action.name

    @property
    def time(self) -> float:
        return self.action.time


@dataclass(frozen=True)
class CombatEvent:
    ability_id: int | None
    timestamp_ms: int  # relative to fight start
    amount: int
    target_id: int | None = None
    ability_name: str | None = None
    damage_type: str | None = None


@dataclass(frozen=True)
class ValidatedReport:
    code: str
    fight_id: int
    duration_seconds: int
    is_kill: bool
    title: str = ""


@dataclass(frozen=True)
class SyncResult:
    found: bool
    offset_seconds: float = 0.0
    matched_timestamp_ms: int | None = None
    reference_action: str = ""


@dataclass(frozen=True)
class DamageMapping:
    report_code: str
    action_key: str
    matched: bool
    damage: int | None = None
    damage_type: str | None = None
    target_count: int | None = None
    hit_count: int | None = None
    matched_time: float | None = None  # seconds, report clock


@dataclass(frozen=True)
class HitRateResult:
    action_key: str
    name: str
    occurrence: int
    time: float
    matched_reports: int
    total_reports: int
    hit_rate: float
    is_dodgeable: bool
    representative_damage: float | None = None
    median_target_count: float | None = None
    hits_per_target: int | None = None
    average_damage_per_target: float | None = None
    damage_type: str | None = None
    exact_hit_rate: float | None = None  # matched/total, unrounded

    @property
    def threshold_hit_rate(self) -> float:
        return self.hit_rate if self.exact_hit_rate is None else self.exact_hit_rate


@dataclass
class FinalAction:
    id: str
    name: str
    time: float
    importance: str
    icon: str
    description: str
    unmitigated_damage: int | None = None
    per_hit_damage: int | None = None
    hit_count: int | None = None
    damage_type: str | None = None
    is_tank_buster: bool = False
    is_dual_tank_buster: bool = False
    # Internal bookkeeping, never serialized
    sample_count: int = 0
    gap_filled: bool = False


@dataclass
class TimelineRunResult:
    success: bool = False
    boss_id: str = ""
    actions: list[FinalAction] = field(default_factory=list)
    reports_used: list[str] = field(default_factory=list)
    canonical_action_count: int = 0
    matched_action_count: int = 0
    dodgeable_action_count: int = 0
    output_path: str | None = None
    errors: list[str] = field(default_factory=list)
    hit_rate_summary: str = ""
