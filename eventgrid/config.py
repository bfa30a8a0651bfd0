"""Service configuration via Pydantic Settings.

All values come from ``EVENTGRID_*`` environment variables or a ``.env`` file.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from eventgrid.services.recurrence import MAX_CUSTOM_RECURRENCE_STEPS


class Settings(BaseSettings):
    app_name: str = "Calendar Event Service"
    log_level: str = "INFO"
    log_json: bool = True

    # How far a custom repeat rule is walked before giving up on a day
    max_custom_recurrence_steps: int = Field(default=MAX_CUSTOM_RECURRENCE_STEPS, gt=0)

    # Pre-load a handful of sample events at startup
    seed_sample_data: bool = False

    model_config = SettingsConfigDict(
        env_prefix="EVENTGRID_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Factory for settings (cached singleton)."""
    return Settings()
