"""Configuration settings using pydantic-settings for environment variable loading."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _data_dir() -> Path:
    return Path.home() / ".taskfilters"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Variables are prefixed with ``TASKFILTERS_`` and may also come from a
    ``.env`` file. Environment variables take precedence over the file.
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKFILTERS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    db_path: Path = Field(default_factory=lambda: _data_dir() / "tasks.db")
    filters_path: Path = Field(default_factory=lambda: _data_dir() / "filters.json")
    options_path: Path = Field(default_factory=lambda: _data_dir() / "options.json")

    # Filtering
    recent_filter_limit: int = Field(default=5, ge=1)
    query_timeout: float | None = Field(default=None, gt=0)

    # Logging
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()
