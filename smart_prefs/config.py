from __future__ import annotations

from functools import lru_cache

from pydantic import NonNegativeInt, PositiveFloat
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the preference store.

    Values are loaded from ``SMART_PREFS_*`` environment variables by default
    and may be overridden via CLI flags by the application entrypoint.
    """

    # Remote loading
    # 0 retries forever; 6 tries at 10 s gives up after about a minute.
    max_retries: NonNegativeInt = 6
    retry_interval_s: PositiveFloat = 10.0
    first_attempt_immediate: bool = False
    wait_for_remote: bool = True

    # Local persistence
    local_store_path: str = ".smart_prefs.json"

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_prefix="SMART_PREFS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
