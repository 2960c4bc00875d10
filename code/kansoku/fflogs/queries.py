"""GraphQL query strings for the FFLogs v2 API."""

RATE_LIMIT_FRAGMENT = """
    rateLimitData {
        pointsSpentThisHour
        limitPerHour
        pointsResetIn
    }
"""

REPORT_METADATA = """
query ReportMetadata($code: String!) {
    reportData {
        report(code: $code) {
            code
            title
            startTime
            endTime
            fights {
                id
                encounterID
                name
                startTime
                endTime
                kill
                difficulty
            }
            masterData {
                actors {
                    id
                    name
                    type
                    subType
                }
                abilities {
                    gameID
                    name
                    type
                }
            }
        }
    }
    RATE_LIMIT
}
"""

REPORT_EVENTS = """
query ReportEvents($code: String!, $fightIDs: [Int]!, $startTime: Float!,
                   $endTime: Float!, $dataType: EventDataType!, $limit: Int) {
    reportData {
        report(code: $code) {
            events(fightIDs: $fightIDs, startTime: $startTime,
                   endTime: $endTime, dataType: $dataType, limit: $limit) {
                data
                nextPageTimestamp
            }
        }
    }
    RATE_LIMIT
}
"""

ENCOUNTER_FIGHT_RANKINGS = """
query EncounterFightRankings($encounterID: Int!, $page: Int) {
    worldData {
        encounter(id: $encounterID) {
            id
            name
            fightRankings(page: $page)
        }
    }
    RATE_LIMIT
}
"""


def with_rate_limit(query: str) -> str:
    """Splice the rateLimitData selection into a query template."""
    return query.replace("RATE_LIMIT", RATE_LIMIT_FRAGMENT)
