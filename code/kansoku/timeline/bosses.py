"""Encounter registry: FFLogs ids and per-boss sync hints."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BossConfig:
    id: str
    name: str
    zone_id: int | None = None
    encounter_id: int | None = None
    timeline_id: str = ""  # name of the canonical/output timeline
    first_action: str | None = None  # reference action for clock sync
    multi_hit_abilities: tuple[str, ...] = ()
    never_dodgeable: tuple[str, ...] = ()


# AAC Light-Heavyweight (zone 62), Cruiserweight (68), Heavyweight (73);
# Pandaemonium Abyssos kept for the older Erichthonios timeline.
BOSSES: dict[str, BossConfig] = {
    "m1s": BossConfig(
        "m1s", "M1S - Black Cat", 62, 93, "aac-light-heavyweight-m1s",
        first_action="Quadruple Crossing",
        multi_hit_abilities=("quadruple crossing", "mouser"),
    ),
    "m2s": BossConfig(
        "m2s", "M2S - Honey B. Lovely", 62, 94, "aac-light-heavyweight-m2s",
        first_action="Call Me Honey",
        multi_hit_abilities=("call me honey", "loveseeker"),
    ),
    "m3s": BossConfig(
        "m3s", "M3S - Brute Bomber", 62, 95, "aac-light-heavyweight-m3s",
        first_action="Knuckle Sandwich",
        multi_hit_abilities=("knuckle sandwich", "octuple lariat"),
    ),
    "m4s": BossConfig(
        "m4s", "M4S - Wicked Thunder", 62, 96, "aac-light-heavyweight-m4s",
        first_action="Wrath of Zeus",
        multi_hit_abilities=("wrath of zeus", "electrope edge"),
    ),
    "m5s": BossConfig(
        "m5s", "M5S - Dancing Green", 68, 97, "aac-cruiserweight-m5s",
        first_action="Deep Cut",
        multi_hit_abilities=("deep cut",),
    ),
    "m6s": BossConfig(
        "m6s", "M6S - Sugar Riot", 68, 98, "aac-cruiserweight-m6s",
        first_action="Mousse Drip",
        multi_hit_abilities=("mousse drip", "layer"),
    ),
    "m7s": BossConfig(
        "m7s", "M7S - Brute Abombinator", 68, 99, "aac-cruiserweight-m7s",
        first_action="Brutal Impact",
        multi_hit_abilities=("brutal impact", "explosion", "sporesplosion"),
        never_dodgeable=("brutal impact",),
    ),
    "m8s": BossConfig(
        "m8s", "M8S - Howling Blade", 68, 100, "aac-cruiserweight-m8s",
        first_action="Extraplanar Pursuit",
        multi_hit_abilities=("twofold tempest", "eminent reign"),
    ),
    "m9s": BossConfig(
        "m9s", "M9S - Vamp Fatale", 73, 101, "aac-heavyweight-m9s",
        first_action="Bloodspin",
    ),
    "m10s": BossConfig(
        "m10s", "M10S - Red Hot & Deep Blue", 73, 102, "aac-heavyweight-m10s",
    ),
    "m11s": BossConfig(
        "m11s", "M11S - The Tyrant", 73, 103, "aac-heavyweight-m11s",
    ),
    "m12s": BossConfig(
        "m12s", "M12S - Lindwurm", 73, 104, "aac-heavyweight-m12s",
    ),
    "m1": BossConfig("m1", "M1 - Black Cat", 62, 93, "aac-light-heavyweight-m1"),
    "m2": BossConfig("m2", "M2 - Honey B. Lovely", 62, 94, "aac-light-heavyweight-m2"),
    "m3": BossConfig("m3", "M3 - Brute Bomber", 62, 95, "aac-light-heavyweight-m3"),
    "m4": BossConfig("m4", "M4 - Wicked Thunder", 62, 96, "aac-light-heavyweight-m4"),
    "m5": BossConfig("m5", "M5 - Dancing Green", 68, 97, "aac-cruiserweight-m5"),
    "m6": BossConfig("m6", "M6 - Sugar Riot", 68, 98, "aac-cruiserweight-m6"),
    "m7": BossConfig("m7", "M7 - Brute Abombinator", 68, 99, "aac-cruiserweight-m7"),
    "m8": BossConfig("m8", "M8 - Howling Blade", 68, 100, "aac-cruiserweight-m8"),
    "p1s": BossConfig(
        "p1s", "P1S - Erichthonios", 44, 78, "pandaemonium-p1s",
        first_action="Gaoler's Flail",
    ),
}

BOSS_ALIASES: dict[str, str] = {
    "dancing-green": "m5s",
    "sugar-riot": "m6s",
    "brute-abominator": "m7s",
    "howling-blade": "m8s",
    "vamp-fatale": "m9s",
    "red-hot-deep-blue": "m10s",
    "the-tyrant": "m11s",
    "lindwurm": "m12s",
}


def get_boss(boss_id: str) -> BossConfig | None:
    key = boss_id.lower()
    return BOSSES.get(BOSS_ALIASES.get(key, key))
