"""CLI script to list the encounters timelines can be generated for."""

import argparse

from kansoku.config import get_settings
from kansoku.timeline.bosses import BOSS_ALIASES, BOSSES
from kansoku.timeline.canonical import JsonTimelineProvider


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="List configured encounters")
    parser.add_argument(
        "--zone-id", type=int, help="Only list encounters in this zone",
    )
    parser.add_argument(
        "--timelines-dir",
        help="Directory holding canonical <boss>.json timelines",
    )
    return parser.parse_args(argv)


def format_bosses(zone_id: int | None, timelines_dir: str) -> list[str]:
    provider = JsonTimelineProvider(timelines_dir)
    aliases: dict[str, list[str]] = {}
    for alias, boss_id in BOSS_ALIASES.items():
        aliases.setdefault(boss_id, []).append(alias)

    lines = []
    for boss in BOSSES.values():
        if zone_id is not None and boss.zone_id != zone_id:
            continue
        has_timeline = provider.path_for(boss.id).is_file()
        line = (
            f"{boss.id:<6} {boss.name:<32} encounter={boss.encounter_id} "
            f"timeline={'yes' if has_timeline else 'no'}"
        )
        if boss.id in aliases:
            line += f" aliases={','.join(sorted(aliases[boss.id]))}"
        lines.append(line)
    return lines


def main() -> None:
    args = parse_args()
    settings = get_settings()
    for line in format_bosses(args.zone_id, args.timelines_dir or settings.timelines_dir):
        print(line)


if __name__ == "__main__":
    main()
