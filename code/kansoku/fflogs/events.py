"""Paginated FFLogs events API fetcher."""

import logging

from kansoku.fflogs.queries import REPORT_EVENTS, with_rate_limit

logger = logging.getLogger(__name__)

MAX_PAGES = 100
PAGE_LIMIT = 10000


async def fetch_all_events(
    client,
    report_code: str,
    fight_id: int,
    start_time: float,
    end_time: float,
    data_type: str = "DamageTaken",
    *,
    max_pages: int = MAX_PAGES,
):
    """Yield event pages as lists instead of accumulating all in memory.

    Args:
        client: FFLogsClient instance.
        report_code: FFLogs report code.
        fight_id: Fight within the report.
        start_time: Fight start timestamp (ms, report clock).
        end_time: Fight end timestamp (ms, report clock).
        data_type: FFLogs EventDataType (e.g. "DamageTaken", "Casts").
        max_pages: Maximum number of pages to fetch (safety limit).

    Yields:
        Lists of raw event dicts, one per API page.
    """
    query = with_rate_limit(REPORT_EVENTS)
    current_start = start_time
    total_fetched = 0
    page_count = 0

    while True:
        variables: dict = {
            "code": report_code,
            "fightIDs": [fight_id],
            "startTime": current_start,
            "endTime": end_time,
            "dataType": data_type,
            "limit": PAGE_LIMIT,
        }

        raw = await client.query(query, variables=variables)
        events_data = raw["reportData"]["report"]["events"]

        page_events = events_data.get("data", [])
        total_fetched += len(page_events)
        page_count += 1
        if page_events:
            yield page_events

        next_page = events_data.get("nextPageTimestamp")
        if next_page is None or next_page >= end_time:
            break

        # Guard against stuck pagination (same timestamp returned)
        if next_page <= current_start:
            logger.warning(
                "Stuck pagination for %s %s: nextPageTimestamp %d <= current %d, "
                "stopping after %d pages (%d events)",
                report_code, data_type, next_page, current_start,
                page_count, total_fetched,
            )
            break

        if page_count >= max_pages:
            logger.warning(
                "Max pages (%d) reached for %s %s, stopping with %d events",
                max_pages, report_code, data_type, total_fetched,
            )
            break

        current_start = next_page
        logger.debug(
            "Events pagination: fetched %d events so far, next page at %d",
            total_fetched, next_page,
        )

    logger.info(
        "Fetched %d %s events for %s fight %d in %d pages",
        total_fetched, data_type, report_code, fight_id, page_count,
    )
