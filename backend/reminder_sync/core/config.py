"""Application configuration using Pydantic Settings.

Environment variables are loaded from .env files and system environment.
All sensitive values should be provided via environment variables.
"""

from functools import lru_cache
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden via environment variables.
    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "Reminder Schedule Sync"
    DEBUG: bool = False

    # Database
    DATABASE_URL: PostgresDsn | None = None
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 30

    # Scheduling
    SCHEDULER_TIMEZONE: str = "UTC"
    GENERATION_HORIZON_DAYS: int = 7
    SOURCE_MODULE: str = "reminder"
    DEFAULT_SNOOZE_OPTIONS: list[int] = [5, 10, 15, 30]

    # Event delivery
    EVENT_MAX_ATTEMPTS: int = 3
    EVENT_RETRY_BACKOFF_SECONDS: float = 0.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None  # Defaults to logs/reminder_sync.log
    LOG_JSON_FORMAT: bool = True

    @field_validator("SCHEDULER_TIMEZONE")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject timezone names unknown to the IANA database."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @field_validator("DEFAULT_SNOOZE_OPTIONS", mode="before")
    @classmethod
    def parse_snooze_options(cls, v: Any) -> list[int]:
        """Parse DEFAULT_SNOOZE_OPTIONS from comma-separated string or list."""
        if isinstance(v, str):
            return [int(item.strip()) for item in v.split(",") if item.strip()]
        if isinstance(v, list):
            return [int(item) for item in v]
        return [5, 10, 15, 30]

    @field_validator("GENERATION_HORIZON_DAYS", "EVENT_MAX_ATTEMPTS")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are cached after first load for performance.
    """
    return Settings()


# Global settings instance
settings = get_settings()
