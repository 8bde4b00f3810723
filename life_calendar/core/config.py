"""
Application configuration using Pydantic Settings.

Centralizes all configuration with environment variable support.
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # Telegram (API_KEY_BOT is the legacy variable name)
    telegram_bot_token: str = Field(
        default="",
        validation_alias=AliasChoices("telegram_bot_token", "api_key_bot"),
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/life_calendar.db"

    # Environment
    environment: str = "development"
    log_level: str = "INFO"
    log_to_file: bool = True

    # Onboarding
    restart_command: str = "/start"

    # Notification schedule (weekday: 0=Monday, 6=Sunday)
    weekly_notification_day: int = 6
    weekly_notification_hour: int = 9
    weekly_notification_minute: int = 0
    daily_greeting_hour: int = 9
    daily_greeting_minute: int = 0
    timezone: str = "UTC"

    # Delivery
    dispatch_timeout_seconds: float = 10.0
    max_concurrent_dispatches: int = 10

    # Region catalog
    default_life_expectancy: int = 72
    region_catalog_path: Optional[str] = None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
