"""Tracker MCP configuration loaded from the environment."""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrackerSettings(BaseSettings):
    """Server settings, read from ``TRACKER_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="TRACKER_", extra="ignore")

    # Database
    db_path: Path = Field(
        default=Path(".tracker.db"),
        validation_alias=AliasChoices("TRACKER_DB_PATH", "DB_PATH"),
    )
    busy_timeout_ms: int = Field(default=5000, ge=0)  # bounded wait for the write lock

    # Logging (always written to stderr; stdout carries the MCP transport)
    log_level: str = "WARNING"

    # Tool defaults
    default_list_limit: int = Field(default=50, ge=1, le=500)


@lru_cache
def get_settings() -> TrackerSettings:
    """Return the process-wide settings instance."""
    return TrackerSettings()
