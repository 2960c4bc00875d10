from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FFLogsBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Fight(FFLogsBaseModel):
    id: int
    name: str = ""
    start_time: int
    end_time: int
    kill: bool | None = None
    encounter_id: int = Field(0, alias="encounterID")
    difficulty: int | None = None

    @property
    def duration_ms(self) -> int:
        return self.end_time - self.start_time


class Actor(FFLogsBaseModel):
    id: int
    name: str
    type: str
    sub_type: str | None = None


class Ability(FFLogsBaseModel):
    game_id: int = Field(alias="gameID")
    name: str = ""
    type: str | int | None = None


class MasterData(FFLogsBaseModel):
    actors: list[Actor] = []
    abilities: list[Ability] = []


class ReportMetadata(FFLogsBaseModel):
    code: str
    title: str = ""
    start_time: int = 0
    end_time: int = 0
    fights: list[Fight] = []
    master_data: MasterData | None = None

    def find_fight(self, fight_id: int) -> Fight | None:
        return next((f for f in self.fights if f.id == fight_id), None)

    def kill_fights(self, encounter_id: int | None = None) -> list[Fight]:
        return [
            f for f in self.fights
            if f.kill and (encounter_id is None or f.encounter_id == encounter_id)
        ]

    @property
    def abilities(self) -> list[Ability]:
        return self.master_data.abilities if self.master_data else []


class EventPage(FFLogsBaseModel):
    data: list[dict] = []
    next_page_timestamp: float | None = None


class RateLimitData(FFLogsBaseModel):
    points_spent_this_hour: float
    limit_per_hour: int
    points_reset_in: int


class RankedReport(FFLogsBaseModel):
    """A candidate report pulled out of the fightRankings JSON blob."""

    code: str
    title: str = "Unknown"
    start_time: int = 0
    fight_id: int | None = Field(None, alias="fightID")
    kill: bool = True
