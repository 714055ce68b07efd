import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DATABASE_PATH = Path(__file__).parent / "data" / "regiodata.db"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    environment: str = Field(default="development", alias="ENVIRONMENT")
    eurostat_api_root: str = Field(
        default="https://ec.europa.eu/eurostat/api/dissemination/statistics/1.0/data/",
        alias="EUROSTAT_API",
    )
    # Fixed trailing query parameters: regional granularity and decimals
    geo_level: str = Field(default="nuts2", alias="EUROSTAT_GEO_LEVEL")
    precision: int = Field(default=1, alias="EUROSTAT_PRECISION")

    fetch_timeout_seconds: float = Field(default=30.0, alias="FETCH_TIMEOUT")
    fetch_max_attempts: int = Field(
        default=3,
        alias="FETCH_MAX_ATTEMPTS",
        description="Transport-level attempts per request (1 disables retry)",
    )
    fetch_backoff_seconds: float = Field(default=1.0, alias="FETCH_BACKOFF")
    max_concurrent_resolutions: int = Field(
        default=4,
        alias="MAX_CONCURRENT_RESOLUTIONS",
        description="Upper bound on indicators resolved at the same time",
    )

    database_path: Path = Field(default=DEFAULT_DATABASE_PATH, alias="DATABASE_PATH")

    resolution_interval_seconds: int = Field(default=3600, alias="RESOLUTION_INTERVAL")
    disable_background_jobs: bool = Field(default=False, alias="DISABLE_BACKGROUND_JOBS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,  # Treat empty strings as not set
        populate_by_name=True,
    )

    @field_validator("eurostat_api_root")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        """Endpoints are appended directly to the root."""
        return v if v.endswith("/") else f"{v}/"

    @field_validator("max_concurrent_resolutions", "fetch_max_attempts")
    @classmethod
    def at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v}")
        return level

    @property
    def dev_mode(self) -> bool:
        return self.environment in ("development", "test")


@lru_cache
def get_settings() -> Settings:
    return Settings()
