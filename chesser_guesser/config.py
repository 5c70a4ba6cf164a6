"""Application configuration using Pydantic settings."""

import os
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root directory
BASE_DIR = Path(__file__).resolve().parent.parent

DAY_SECONDS = 24 * 60 * 60


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "ChesserGuesser"
    app_version: str = "1.0.0"
    debug: bool = False

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Daily reset timezone (IANA name)
    timezone: str = "UTC"

    # Upstream puzzle source
    puzzle_source_url: str = (
        "https://f73vgbj1jk.execute-api.us-west-2.amazonaws.com/prod/chesserGuesser"
    )
    puzzle_source_timeout_seconds: float = 10.0
    puzzle_fetch_attempts: int = 3
    puzzle_fetch_retry_delay_seconds: float = 0.5
    puzzle_pool_size: int = 400

    # Expiry
    puzzle_cache_ttl_seconds: int = 7 * DAY_SECONDS
    daily_record_ttl_seconds: int = 7 * DAY_SECONDS
    submission_ttl_seconds: int = 30 * DAY_SECONDS

    # Rate limiting
    rate_limit_submission_cooldown_seconds: int = 2
    rate_limit_submissions_per_day: int = 4
    rate_limit_leaderboard_per_minute: int = 30
    rate_limit_puzzles_per_minute: int = 20

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject timezone names the zoneinfo database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @field_validator("puzzle_pool_size")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        """The daily set draws one puzzle from each quarter of the pool."""
        if v < 4:
            raise ValueError("PUZZLE_POOL_SIZE must be at least 4")
        return v

    @field_validator("puzzle_fetch_attempts")
    @classmethod
    def validate_fetch_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("PUZZLE_FETCH_ATTEMPTS must be at least 1")
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.debug:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
