from functools import lru_cache

from pydantic import BaseModel, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FFLogsConfig(BaseModel):
    client_id: str = ""
    client_secret: SecretStr = SecretStr("")
    api_url: str = "https://www.fflogs.com/api/v2/client"
    oauth_url: str = "https://www.fflogs.com/oauth/token"


class SyncConfig(BaseModel):
    """Tunables shared by every stage of the timeline pipeline."""

    dodgeable_threshold: float = 0.7
    min_reports_for_confidence: int | None = None  # None = min(3, processed)
    never_dodgeable: list[str] = []
    multi_hit_abilities: list[str] = []
    min_fight_duration: int = 120  # seconds
    reference_action: str | None = None
    match_window_sec: float = 20.0
    occurrence_gap_sec: float = 5.0
    default_target_count: int = 8
    report_concurrency: int = 4
    include_dodgeable: bool = True

    # Classification thresholds
    critical_damage: int = 150_000
    high_damage: int = 70_000
    tank_buster_damage: int = 80_000
    low_hit_rate: float = 0.5
    raidwide_hit_rate: float = 0.9

    @model_validator(mode="after")
    def _check_ranges(self):
        for name in ("dodgeable_threshold", "low_hit_rate", "raidwide_hit_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"SYNC__{name.upper()} must be between 0 and 1")
        if self.report_concurrency < 1:
            raise ValueError("SYNC__REPORT_CONCURRENCY must be >= 1")
        if self.default_target_count < 1:
            raise ValueError("SYNC__DEFAULT_TARGET_COUNT must be >= 1")
        if (
            self.min_reports_for_confidence is not None
            and self.min_reports_for_confidence < 1
        ):
            raise ValueError("SYNC__MIN_REPORTS_FOR_CONFIDENCE must be >= 1")
        return self

    def for_boss(self, boss) -> "SyncConfig":
        """Overlay an encounter's reference action and multi-hit list."""
        update: dict = {}
        if self.reference_action is None and boss.first_action:
            update["reference_action"] = boss.first_action
        if boss.multi_hit_abilities:
            merged = list(self.multi_hit_abilities)
            merged.extend(
                a for a in boss.multi_hit_abilities if a not in merged
            )
            update["multi_hit_abilities"] = merged
        if boss.never_dodgeable:
            merged = list(self.never_dodgeable)
            merged.extend(a for a in boss.never_dodgeable if a not in merged)
            update["never_dodgeable"] = merged
        return self.model_copy(update=update) if update else self


class OutputConfig(BaseModel):
    directory: str = "timelines/generated"
    indent: int = 2


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    debug: bool = False
    log_level: str = "INFO"
    timelines_dir: str = "timelines/canonical"
    fflogs: FFLogsConfig = FFLogsConfig()
    sync: SyncConfig = SyncConfig()
    output: OutputConfig = OutputConfig()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
