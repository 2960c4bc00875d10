"""Report source backed by the FFLogs v2 GraphQL API.

Discovery reads the ``fightRankings`` JSON scalar of an encounter, report
metadata comes from ``reportData.report``, and combat events are the
paginated ``DamageTaken`` stream of one fight.
"""

import json
import logging
from typing import Protocol

from kansoku.fflogs.events import fetch_all_events
from kansoku.fflogs.models import Fight, RankedReport, ReportMetadata
from kansoku.fflogs.queries import (
    ENCOUNTER_FIGHT_RANKINGS,
    REPORT_METADATA,
    with_rate_limit,
)
from kansoku.timeline.models import CombatEvent

logger = logging.getLogger(__name__)

# Each applied "damage" event is preceded by a "calculateddamage" snapshot
# of the same hit.
DAMAGE_EVENT_TYPES = frozenset({"damage"})
RANKING_LIST_KEYS = ("rankings", "data", "reports", "fights")


class ReportSource(Protocol):
    async def discover_reports(
        self, encounter_id: int, limit: int,
    ) -> list[RankedReport]: ...

    async def fetch_report(self, code: str) -> ReportMetadata: ...

    async def fetch_events(self, code: str, fight: Fight) -> list[CombatEvent]: ...


def parse_fight_rankings(raw_data, limit: int) -> list[RankedReport]:
    """Pull candidate reports out of the fightRankings JSON scalar.

    The scalar has no published schema. Entries are looked up under the first
    of ``rankings``/``data``/``reports``/``fights`` that holds a list, and the
    report code may be a plain string or nested as ``report.code``.
    """
    if isinstance(raw_data, str):
        raw_data = json.loads(raw_data)
    if raw_data is None:
        return []

    if isinstance(raw_data, list):
        entries = raw_data
    else:
        entries = next(
            (raw_data[k] for k in RANKING_LIST_KEYS
             if isinstance(raw_data.get(k), list)),
            [],
        )

    reports: list[RankedReport] = []
    seen: set[str] = set()
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        report = entry.get("report")
        if isinstance(report, str):
            code = report
        elif isinstance(report, dict):
            code = report.get("code") or report.get("reportCode")
        else:
            code = entry.get("reportCode")
        if not code or code in seen:
            continue
        seen.add(code)

        nested = report if isinstance(report, dict) else {}
        start_time = entry.get("startTime", nested.get("startTime", 0))
        reports.append(RankedReport(
            code=code,
            title=entry.get("title") or entry.get("name") or "Unknown",
            start_time=int(start_time or 0),
            fight_id=nested.get("fightID", entry.get("fightID")),
            kill=bool(entry.get("kill", True)),
        ))
        if len(reports) >= limit:
            break

    if not reports and entries:
        logger.warning(
            "Could not parse any reports from fightRankings (%d entries)",
            len(entries),
        )
    return reports


def parse_damage_events(
    raw_events: list[dict], fight_start_ms: int,
) -> list[CombatEvent]:
    """Convert raw DamageTaken events into fight-relative CombatEvents.

    Damage is the unmitigated amount when FFLogs supplies it, falling back to
    the applied amount.
    """
    events = []
    for raw in raw_events:
        event_type = raw.get("type")
        if event_type is not None and event_type not in DAMAGE_EVENT_TYPES:
            continue
        ability_id = raw.get("abilityGameID")
        if ability_id is None:
            ability_id = (raw.get("ability") or {}).get("guid")
        amount = raw.get("unmitigatedAmount")
        if amount is None:
            amount = raw.get("amount") or 0
        events.append(CombatEvent(
            ability_id=ability_id,
            timestamp_ms=int(raw.get("timestamp", fight_start_ms)) - fight_start_ms,
            amount=int(amount),
            target_id=raw.get("targetID"),
            ability_name=(raw.get("ability") or {}).get("name"),
        ))
    return events


class FFLogsReportSource:
    """ReportSource over an open FFLogsClient."""

    def __init__(self, client) -> None:
        self._client = client

    async def discover_reports(
        self, encounter_id: int, limit: int,
    ) -> list[RankedReport]:
        data = await self._client.query(
            with_rate_limit(ENCOUNTER_FIGHT_RANKINGS),
            variables={"encounterID": encounter_id, "page": 1},
        )
        encounter = data["worldData"]["encounter"]
        if encounter is None:
            logger.warning("Encounter %d not found on FFLogs", encounter_id)
            return []
        reports = parse_fight_rankings(encounter.get("fightRankings"), limit)
        logger.info(
            "Found %d candidate reports for encounter %d",
            len(reports), encounter_id,
        )
        return reports

    async def fetch_report(self, code: str) -> ReportMetadata:
        data = await self._client.query(
            with_rate_limit(REPORT_METADATA), variables={"code": code},
        )
        report = data["reportData"]["report"]
        if report is None:
            raise LookupError(f"Report {code} not found")
        return ReportMetadata.model_validate(report)

    async def fetch_events(self, code: str, fight: Fight) -> list[CombatEvent]:
        events: list[CombatEvent] = []
        async for page in fetch_all_events(
            self._client, code, fight.id, fight.start_time, fight.end_time,
            data_type="DamageTaken",
        ):
            events.extend(parse_damage_events(page, fight.start_time))
        return events
