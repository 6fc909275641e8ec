"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Claude API (optional - intent classification degrades without it)
    ANTHROPIC_API_KEY: Optional[str] = None
    CLAUDE_MODEL: str = "claude-sonnet-4-20250514"
    INTENT_MAX_TOKENS: int = 8000

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Search Console limits
    DEFAULT_ROW_LIMIT: int = 1000
    MAX_ROW_LIMIT: int = 25000

    # Report layout
    MIN_VISIBLE_COLUMNS: int = 3
    DEFAULT_ROWS_PER_PAGE: int = 10

    # Timeouts
    API_TIMEOUT: int = 60

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
