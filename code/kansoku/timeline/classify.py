"""Mechanic classification tables.

Each classifier is an ordered list of ``(predicate, result)`` pairs; the
first predicate that holds decides. Keyword groups overlap ("Flare Impact"
is both a tank-buster name and an explosion), so list order is the priority.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from kansoku.config import SyncConfig


@dataclass(frozen=True)
class MechanicProfile:
    """Everything the classifiers may look at for one action."""

    name: str
    hit_rate: float = 0.0
    per_player_damage: float | None = None
    median_target_count: float | None = None
    average_damage_per_target: float | None = None
    hit_count: int | None = None
    per_hit_damage: int | None = None
    damage_type: str | None = None
    is_tank_buster: bool = False
    is_dual_tank_buster: bool = False


Predicate = Callable[[MechanicProfile, SyncConfig], bool]


def _name(pattern: str) -> Predicate:
    regex = re.compile(pattern, re.IGNORECASE)
    return lambda p, _cfg: regex.search(p.name) is not None


def _always(_p: MechanicProfile, _cfg: SyncConfig) -> bool:
    return True


TANK_BUSTER_NAME = _name(r"buster|smash|cleave|slam|strike|needle|flare")
DUAL_TANK_BUSTER_NAME = _name(r"dual|both|tanks|shared|split")


def _tank_buster_damage_shape(p: MechanicProfile, cfg: SyncConfig) -> bool:
    return (
        p.median_target_count is not None
        and p.median_target_count <= 2
        and p.average_damage_per_target is not None
        and p.average_damage_per_target > cfg.tank_buster_damage
    )


TANK_BUSTER_RULES: list[tuple[Predicate, bool]] = [
    (TANK_BUSTER_NAME, True),
    (_tank_buster_damage_shape, True),
]

DUAL_TANK_BUSTER_RULES: list[tuple[Predicate, bool]] = [
    (lambda p, _cfg: not p.is_tank_buster, False),
    (DUAL_TANK_BUSTER_NAME, True),
    (lambda p, _cfg: p.median_target_count == 2, True),
]


def _damage_above(threshold: str) -> Predicate:
    def check(p: MechanicProfile, cfg: SyncConfig) -> bool:
        return (
            p.per_player_damage is not None
            and p.per_player_damage > getattr(cfg, threshold)
        )
    return check


IMPORTANCE_RULES: list[tuple[Predicate, str]] = [
    (_damage_above("critical_damage"), "critical"),
    (lambda p, _cfg: p.is_tank_buster, "high"),
    (_damage_above("high_damage"), "high"),
    (lambda p, cfg: p.hit_rate < cfg.low_hit_rate, "low"),
    (_always, "medium"),
]

DEFAULT_ICON = "⚔️"

ICON_RULES: list[tuple[Predicate, str]] = [
    (lambda p, _cfg: p.is_tank_buster, "🛡️"),
    (_name(r"fire|flame|burn|heat"), "🔥"),
    (_name(r"ice|freeze|frost|cold"), "❄️"),
    (_name(r"lightning|thunder|volt|shock"), "⚡"),
    (_name(r"earth|quake|stone|rock"), "🌍"),
    (_name(r"wind|gale|aero"), "💨"),
    (_name(r"water|drown|wave|flood"), "🌊"),
    (_name(r"dark|shadow|umbra"), "🌑"),
    (_name(r"light|holy|lumina"), "✨"),
    (_name(r"explosion|blast|bomb|impact"), "💥"),
    (_name(r"seed|vine|plant|nature"), "🌱"),
    (_name(r"stack|party"), "🎯"),
    (_name(r"spread"), "💫"),
    (_name(r"enrage|special"), "💀"),
    (_always, DEFAULT_ICON),
]

DESCRIPTION_RULES: list[tuple[Predicate, str]] = [
    (lambda p, _cfg: p.is_dual_tank_buster, "dual tank buster targeting both tanks."),
    (lambda p, _cfg: p.is_tank_buster, "tank buster requiring mitigation."),
    (_name(r"raid|party|aoe"), "raidwide damage."),
    (lambda p, cfg: p.hit_rate >= cfg.raidwide_hit_rate, "raidwide damage."),
    (_name(r"stack"), "stack marker damage."),
    (_name(r"spread"), "spread marker damage."),
    (_always, "damage mechanic."),
]

PHYSICAL_KEYWORDS = (
    "slash", "pierce", "blunt", "strike", "shot", "blast",
    "swing", "kick", "punch", "claw", "fang", "horn",
    "torture", "ravage", "devour", "gnaw",
)
MAGICAL_KEYWORDS = (
    "fire", "blizzard", "thunder", "aero", "stone", "water",
    "flare", "freeze", "burst", "miasma", "bio",
    "holy", "dark", "void", "cosmos",
    "beam", "laser", "ray", "pulse", "wave",
    "bomb", "explosion", "eruption",
)

_WHITESPACE = re.compile(r"\s+")


def first_match(rules, profile: MechanicProfile, config: SyncConfig):
    for predicate, result in rules:
        if predicate(profile, config):
            return result
    return None


def is_tank_buster(profile: MechanicProfile, config: SyncConfig) -> bool:
    return bool(first_match(TANK_BUSTER_RULES, profile, config))


def is_dual_tank_buster(profile: MechanicProfile, config: SyncConfig) -> bool:
    return bool(first_match(DUAL_TANK_BUSTER_RULES, profile, config))


def classify_importance(profile: MechanicProfile, config: SyncConfig) -> str:
    return first_match(IMPORTANCE_RULES, profile, config)


def select_icon(profile: MechanicProfile, config: SyncConfig) -> str:
    return first_match(ICON_RULES, profile, config)


def describe(profile: MechanicProfile, config: SyncConfig) -> str:
    """Build the one- or two-sentence mechanic description.

    Layout: optional "N hits of" prefix, the classification phrase with the
    damage type as an adjective, then the per-hit figure for multi-hits.
    """
    multi_hit = profile.hit_count is not None and profile.hit_count > 1
    body = first_match(DESCRIPTION_RULES, profile, config)
    if profile.damage_type:
        body = f"{profile.damage_type} {body}"

    parts = []
    if multi_hit:
        parts.append(f"{profile.hit_count} hits of")
    parts.append(body)
    if multi_hit and profile.per_hit_damage:
        parts.append(f"Approximately ~{profile.per_hit_damage:,} per hit.")

    text = _WHITESPACE.sub(" ", " ".join(parts)).strip()
    return text[:1].upper() + text[1:]


def infer_damage_type(name: str | None) -> str:
    """Guess physical/magical/mixed from ability name keywords."""
    lower = (name or "").lower()
    physical = any(k in lower for k in PHYSICAL_KEYWORDS)
    magical = any(k in lower for k in MAGICAL_KEYWORDS)
    if physical and magical:
        return "mixed"
    if magical:
        return "magical"
    return "physical"
