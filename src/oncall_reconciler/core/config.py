from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="ONCALL_", case_sensitive=False)

    environment: Literal["development", "staging", "production"] = "development"
    project_name: str = "On-call Shift Reconciler"
    version: str = "0.1.0"
    log_level: str = "INFO"

    reference_utc_offset_hours: float = 8.0
    calendar_time_zone: str = "Asia/Singapore"

    max_swaps: int = 200
    random_seed: int | None = None
    out_of_office_markers: list[str] = ["xoncall", "out of"]

    pagerduty_base_url: str = "https://api.pagerduty.com"
    pagerduty_api_key: str = ""
    google_calendar_base_url: str = "https://www.googleapis.com/calendar/v3"
    google_access_token: str = ""
    http_timeout_seconds: float = 30.0

    @model_validator(mode="after")
    def validate_time_zones_agree(self) -> "Settings":
        # Collaborators render times in calendar_time_zone, the engine in the fixed offset.
        try:
            zone = ZoneInfo(self.calendar_time_zone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown calendar time zone {self.calendar_time_zone!r}") from exc
        zone_offset = datetime.now(zone).utcoffset()
        if zone_offset != timedelta(hours=self.reference_utc_offset_hours):
            raise ValueError(
                f"calendar time zone {self.calendar_time_zone!r} is UTC{zone_offset} now, "
                f"but reference_utc_offset_hours is {self.reference_utc_offset_hours}"
            )
        return self

    @property
    def reference_timezone(self) -> timezone:
        return timezone(timedelta(hours=self.reference_utc_offset_hours))


@lru_cache
def get_settings() -> Settings:
    return Settings()
