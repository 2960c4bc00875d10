"""Timeline generation pipeline.

Load the canonical timeline, validate reports, then for every report (with
bounded concurrency) sync its clock and map its damage events. Once every
report task has finished the mappings are merged, classified, gap-filled and
written out.
"""

import asyncio
import logging
from pathlib import Path

from kansoku.config import SyncConfig
from kansoku.fflogs.auth import FFLogsAuthError
from kansoku.fflogs.models import ReportMetadata
from kansoku.timeline.aggregate import (
    AggregationState,
    analyze_hit_rates,
    merge,
    summarize_hit_rates,
)
from kansoku.timeline.bosses import BossConfig, get_boss
from kansoku.timeline.canonical import TimelineProvider
from kansoku.timeline.discovery import (
    discover_and_validate_reports,
    validate_report_codes,
)
from kansoku.timeline.gap_fill import fill_gaps
from kansoku.timeline.mapper import map_damage_to_actions
from kansoku.timeline.models import (
    CanonicalAction,
    DamageMapping,
    TimelineRunResult,
    ValidatedReport,
)
from kansoku.timeline.output import write_timeline
from kansoku.timeline.sync import (
    ReportSyncError,
    build_ability_lookup,
    enrich_events,
    find_sync_reference,
)
from kansoku.timeline.synthesize import build_final_timeline

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "timelines/generated"


def default_output_path(boss: BossConfig, output_dir: str | Path) -> Path:
    return Path(output_dir) / f"{boss.timeline_id or boss.id}.json"


async def process_report(
    source,
    report: ValidatedReport,
    actions: list[CanonicalAction],
    config: SyncConfig,
    metadata: ReportMetadata | None = None,
) -> list[DamageMapping]:
    """Sync one report against the canonical timeline and map its damage.

    Raises ReportSyncError when the reference action is missing; any other
    collaborator error propagates unchanged.
    """
    if metadata is None:
        metadata = await source.fetch_report(report.code)
    fight = metadata.find_fight(report.fight_id)
    if fight is None:
        raise LookupError(f"Fight {report.fight_id} not found")

    events = await source.fetch_events(report.code, fight)
    events = enrich_events(events, build_ability_lookup(metadata.abilities))

    sync = find_sync_reference(
        actions, events, fight.duration_ms, config.reference_action,
    )
    if not sync.found:
        raise ReportSyncError(
            f"Sync reference '{sync.reference_action}' not found"
        )
    logger.info(
        "Report %s: synced on %s at %dms (offset %+.3fs), %d events",
        report.code, sync.reference_action, sync.matched_timestamp_ms,
        sync.offset_seconds, len(events),
    )
    return map_damage_to_actions(
        report.code, actions, events, sync.offset_seconds, config,
    )


async def _gather_reports(
    source,
    reports: list[ValidatedReport],
    actions: list[CanonicalAction],
    config: SyncConfig,
    metadata_cache: dict[str, ReportMetadata],
) -> list:
    semaphore = asyncio.Semaphore(config.report_concurrency)

    async def run_one(report: ValidatedReport):
        async with semaphore:
            return await process_report(
                source, report, actions, config, metadata_cache.get(report.code),
            )

    return await asyncio.gather(
        *(run_one(r) for r in reports), return_exceptions=True,
    )


def _fail(result: TimelineRunResult, message: str) -> TimelineRunResult:
    logger.error("Timeline generation failed: %s", message)
    result.errors.append(message)
    result.success = False
    return result


async def generate_timeline(
    boss_id: str,
    *,
    provider: TimelineProvider,
    source=None,
    config: SyncConfig | None = None,
    report_codes: list[str] | None = None,
    count: int = 10,
    output_path: str | Path | None = None,
    output_dir: str | Path = DEFAULT_OUTPUT_DIR,
    indent: int = 2,
    dry_run: bool = False,
) -> TimelineRunResult:
    """Run the full pipeline for one encounter.

    Args:
        boss_id: Encounter id or alias from the boss registry.
        provider: Canonical timeline provider.
        source: ReportSource used for discovery, metadata and events.
        config: Sync tunables; encounter defaults are overlaid on top.
        report_codes: Explicit reports to use instead of discovery.
        count: Number of reports to discover.
        output_path: Artifact location; defaults to ``output_dir/<timeline>.json``.
        dry_run: Build the timeline without writing the artifact.

    Fatal problems (unknown boss, missing timeline, no usable reports) return
    ``success=False`` and write nothing. Per-report problems are collected in
    ``errors`` and the run continues.
    """
    result = TimelineRunResult(boss_id=boss_id)

    boss = get_boss(boss_id)
    if boss is None:
        return _fail(result, f"Unknown boss: {boss_id}")
    result.boss_id = boss.id
    config = (config or SyncConfig()).for_boss(boss)

    loaded = provider.load(boss.id)
    if not loaded.available:
        return _fail(result, f"Canonical timeline unavailable: {loaded.error}")
    actions = loaded.actions
    if not actions:
        return _fail(result, f"Canonical timeline for {boss.id} is empty")
    result.canonical_action_count = len(actions)

    if source is None:
        return _fail(result, "No report source configured")

    metadata_cache: dict[str, ReportMetadata] = {}
    try:
        if report_codes:
            reports = await validate_report_codes(
                source, report_codes, boss.encounter_id,
                min_duration=config.min_fight_duration,
                errors=result.errors, metadata_cache=metadata_cache,
            )
        elif boss.encounter_id is None:
            return _fail(
                result,
                f"{boss.id} has no encounter id; pass report codes explicitly",
            )
        else:
            reports = await discover_and_validate_reports(
                source, boss.encounter_id, count,
                min_duration=config.min_fight_duration,
                errors=result.errors, metadata_cache=metadata_cache,
            )
    except FFLogsAuthError as exc:
        return _fail(result, f"Authentication failed: {exc}")

    if not reports:
        return _fail(result, f"No eligible reports found for {boss.id}")
    logger.info("Processing %d reports for %s", len(reports), boss.name)

    outcomes = await _gather_reports(source, reports, actions, config, metadata_cache)

    state = AggregationState()
    for report, outcome in zip(reports, outcomes):
        if isinstance(outcome, Exception):
            logger.warning("Skipping report %s: %s", report.code, outcome)
            result.errors.append(f"Report {report.code}: {outcome}")
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        state = merge(state, report.code, outcome)
        result.reports_used.append(report.code)

    if not result.reports_used:
        return _fail(result, "No reports could be synchronized and mapped")

    hit_rates = analyze_hit_rates(actions, state, config)
    result.hit_rate_summary = summarize_hit_rates(hit_rates)
    result.matched_action_count = sum(1 for r in hit_rates if r.matched_reports)
    result.dodgeable_action_count = sum(1 for r in hit_rates if r.is_dodgeable)

    result.actions = fill_gaps(build_final_timeline(hit_rates, config))
    result.success = True

    if dry_run:
        logger.info("Dry run, not writing %d actions", len(result.actions))
        return result

    path = Path(output_path) if output_path else default_output_path(boss, output_dir)
    result.output_path = str(write_timeline(result.actions, path, indent))
    return result
