"""CLI script to generate an enriched boss timeline from FFLogs reports."""

import argparse
import asyncio
import logging

from kansoku.config import SyncConfig, get_settings
from kansoku.fflogs.auth import FFLogsAuth, FFLogsAuthError
from kansoku.fflogs.client import FFLogsClient
from kansoku.fflogs.rate_limiter import RateLimiter
from kansoku.fflogs.source import FFLogsReportSource
from kansoku.timeline.canonical import JsonTimelineProvider
from kansoku.timeline.models import TimelineRunResult
from kansoku.timeline.processor import generate_timeline

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate a boss timeline from FFLogs reports",
    )
    parser.add_argument("boss", help="Boss id or alias (e.g. m7s, lindwurm)")
    parser.add_argument(
        "--reports",
        nargs="+",
        metavar="CODE",
        help="Use these report codes instead of discovering from rankings",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=10,
        help="Number of reports to discover (default: 10)",
    )
    parser.add_argument("--output", help="Output file path")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Build the timeline without writing it",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        help="Hit rate below which an action is dodgeable",
    )
    dodgeable = parser.add_mutually_exclusive_group()
    dodgeable.add_argument(
        "--include-dodgeable",
        dest="include_dodgeable",
        action="store_true",
        default=None,
        help="Keep dodgeable actions in the output",
    )
    dodgeable.add_argument(
        "--exclude-dodgeable",
        dest="include_dodgeable",
        action="store_false",
        help="Drop dodgeable actions from the output",
    )
    parser.add_argument(
        "--min-duration",
        type=int,
        help="Minimum kill duration in seconds",
    )
    parser.add_argument(
        "--reference-action",
        help="Canonical action to sync report clocks on",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        help="Reports processed concurrently",
    )
    parser.add_argument(
        "--timelines-dir",
        help="Directory holding canonical <boss>.json timelines",
    )
    return parser.parse_args(argv)


def build_sync_config(settings, args: argparse.Namespace) -> SyncConfig:
    """Overlay CLI flags on the configured sync settings."""
    overrides = {
        "dodgeable_threshold": args.threshold,
        "include_dodgeable": args.include_dodgeable,
        "min_fight_duration": args.min_duration,
        "reference_action": args.reference_action,
        "report_concurrency": args.concurrency,
    }
    update = {k: v for k, v in overrides.items() if v is not None}
    return SyncConfig.model_validate({**settings.sync.model_dump(), **update})


async def run(args: argparse.Namespace) -> TimelineRunResult:
    settings = get_settings()
    config = build_sync_config(settings, args)
    provider = JsonTimelineProvider(args.timelines_dir or settings.timelines_dir)

    auth = FFLogsAuth(
        settings.fflogs.client_id,
        settings.fflogs.client_secret.get_secret_value(),
        settings.fflogs.oauth_url,
    )
    async with FFLogsClient(
        auth, RateLimiter(), api_url=settings.fflogs.api_url,
    ) as fflogs:
        try:
            await fflogs.authenticate()
        except FFLogsAuthError as exc:
            logger.error("FFLogs authentication failed: %s", exc)
            return TimelineRunResult(
                boss_id=args.boss, errors=[f"Authentication failed: {exc}"],
            )

        return await generate_timeline(
            args.boss,
            provider=provider,
            source=FFLogsReportSource(fflogs),
            config=config,
            report_codes=args.reports,
            count=args.count,
            output_path=args.output,
            output_dir=settings.output.directory,
            indent=settings.output.indent,
            dry_run=args.dry_run,
        )


def report(result: TimelineRunResult) -> None:
    if result.hit_rate_summary:
        logger.info("\n%s", result.hit_rate_summary)
    logger.info(
        "Done: success=%s, reports=%d, actions=%d, matched=%d, dodgeable=%d",
        result.success,
        len(result.reports_used),
        result.canonical_action_count,
        result.matched_action_count,
        result.dodgeable_action_count,
    )
    if result.output_path:
        logger.info("Timeline written to %s", result.output_path)
    for err in result.errors:
        logger.warning("  %s", err)


def main() -> None:
    args = parse_args()
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level,
    )
    result = asyncio.run(run(args))
    report(result)
    if not result.success:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
