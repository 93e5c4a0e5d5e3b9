"""
Application Configuration
=========================

Centralized configuration using Pydantic Settings.
Loads from environment variables with validation.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DURATION_UNITS = ("minutes", "seconds")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")

    # Server
    PORT: int = Field(default=8000, description="Port to bind to (Render injects this)")

    # Database - Supabase
    SUPABASE_DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=20, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=40, ge=0)
    DB_POOL_TIMEOUT: int = Field(default=30, ge=1)
    DB_POOL_RECYCLE: int = Field(default=300)
    DB_CREATE_TABLES: bool = Field(
        default=False,
        description="Create the tasks/stats tables on startup when missing",
    )

    # CORS
    ALLOWED_ORIGINS: str = Field(default="*")

    # Tasks
    DURATION_INPUT_UNIT: str = Field(
        default="minutes",
        description="Unit clients send durations in; stored as seconds",
    )
    SEED_SAMPLE_TASK: bool = Field(default=True)
    STATS_RECORD_ID: str = Field(default="default", min_length=1, max_length=32)

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS into a list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def database_url_async(self) -> str:
        """Convert database URL to async format for asyncpg."""
        if self.SUPABASE_DATABASE_URL:
            return self.SUPABASE_DATABASE_URL.replace(
                "postgresql://", "postgresql+asyncpg://"
            )
        return ""

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT.lower() == "development"

    @field_validator("DURATION_INPUT_UNIT")
    @classmethod
    def validate_duration_unit(cls, v: str) -> str:
        """Only minutes and seconds are understood."""
        unit = v.strip().lower()
        if unit not in DURATION_UNITS:
            raise ValueError(
                f"DURATION_INPUT_UNIT must be one of {', '.join(DURATION_UNITS)}"
            )
        return unit

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return v.strip().upper()


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


# Export a default settings instance
settings = get_settings()
