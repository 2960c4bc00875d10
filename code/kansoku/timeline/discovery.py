"""Report discovery and validation.

A report is usable when it contains a kill of the encounter that lasted at
least the configured minimum. When a report holds several kills the longest
one is used.
"""

import logging

from kansoku.fflogs.auth import FFLogsAuthError
from kansoku.fflogs.models import ReportMetadata
from kansoku.timeline.models import ValidatedReport

logger = logging.getLogger(__name__)


def select_fight(
    metadata: ReportMetadata,
    encounter_id: int | None,
    *,
    require_kill: bool = True,
    min_duration: int = 120,
) -> ValidatedReport | None:
    """Pick the longest eligible fight in a report, or None."""
    fights = [
        f for f in metadata.fights
        if encounter_id is None or f.encounter_id == encounter_id
    ]
    if require_kill:
        fights = [f for f in fights if f.kill]
    if not fights:
        return None

    longest = max(fights, key=lambda f: f.duration_ms)
    duration = round(longest.duration_ms / 1000)
    if duration < min_duration:
        return None

    return ValidatedReport(
        code=metadata.code,
        fight_id=longest.id,
        duration_seconds=duration,
        is_kill=bool(longest.kill),
        title=metadata.title,
    )


async def validate_report_codes(
    source,
    codes: list[str],
    encounter_id: int | None,
    *,
    require_kill: bool = True,
    min_duration: int = 120,
    limit: int | None = None,
    errors: list[str] | None = None,
    metadata_cache: dict[str, ReportMetadata] | None = None,
) -> list[ValidatedReport]:
    """Fetch metadata for each code and keep the eligible ones.

    Fetch failures are recorded in ``errors`` (when given) and skipped;
    authentication failures propagate. Fetched metadata is stored in
    ``metadata_cache`` so later stages need not fetch it again.
    """
    validated: list[ValidatedReport] = []
    for code in codes:
        if limit is not None and len(validated) >= limit:
            break
        try:
            metadata = await source.fetch_report(code)
        except FFLogsAuthError:
            raise
        except Exception as exc:
            logger.warning("Failed to validate report %s: %s", code, exc)
            if errors is not None:
                errors.append(f"Report {code}: {exc}")
            continue

        report = select_fight(
            metadata, encounter_id,
            require_kill=require_kill, min_duration=min_duration,
        )
        if report is None:
            logger.info("Report %s has no eligible kill, skipping", code)
            continue
        if metadata_cache is not None:
            metadata_cache[code] = metadata
        validated.append(report)

    logger.info("Validated %d of %d reports", len(validated), len(codes))
    return validated


async def discover_and_validate_reports(
    source,
    encounter_id: int,
    limit: int,
    *,
    require_kill: bool = True,
    min_duration: int = 120,
    errors: list[str] | None = None,
    metadata_cache: dict[str, ReportMetadata] | None = None,
) -> list[ValidatedReport]:
    """Discover candidate reports from rankings, then validate up to ``limit``.

    Requests ``3 * limit`` candidates; many ranked reports hold no usable kill.
    """
    candidates = await source.discover_reports(encounter_id, limit * 3)
    if not candidates:
        logger.warning("No candidate reports found for encounter %d", encounter_id)
        return []

    codes = [c.code for c in candidates if c.kill or not require_kill]
    return await validate_report_codes(
        source, codes, encounter_id,
        require_kill=require_kill, min_duration=min_duration,
        limit=limit, errors=errors, metadata_cache=metadata_cache,
    )
