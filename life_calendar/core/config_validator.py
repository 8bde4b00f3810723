"""
Startup configuration validation and redacted summary logging.

Called before the bot application is built to fail fast on misconfiguration.
"""

import logging
import re
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..domain.errors import ConfigurationError
from .config import Settings

logger = logging.getLogger(__name__)

# Minimal pattern: scheme://... or scheme:///...
_SQLALCHEMY_URL_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+\-.]*://")


def validate_config(settings: Settings, require_token: bool = True) -> List[str]:
    """
    Validate application configuration and return a list of error strings.

    An empty list means the configuration is valid.
    """
    errors: List[str] = []

    # -- Required secrets --------------------------------------------------
    if require_token:
        token = settings.telegram_bot_token or ""
        if not token.strip():
            errors.append("TELEGRAM_BOT_TOKEN (or API_KEY_BOT) is required but missing or empty")

    # -- DATABASE_URL format -----------------------------------------------
    db_url = (settings.database_url or "").strip()
    if not db_url:
        errors.append("DATABASE_URL is required but missing or empty")
    elif not _SQLALCHEMY_URL_RE.match(db_url):
        errors.append(
            f"DATABASE_URL format is invalid (expected SQLAlchemy URL like "
            f"'sqlite+aiosqlite:///...'): '{db_url}'"
        )

    # -- Schedule ----------------------------------------------------------
    if not 0 <= settings.weekly_notification_day <= 6:
        errors.append(
            f"WEEKLY_NOTIFICATION_DAY must be 0-6 (0=Monday): "
            f"{settings.weekly_notification_day}"
        )
    for name in ("weekly_notification_hour", "daily_greeting_hour"):
        value = getattr(settings, name)
        if not 0 <= value <= 23:
            errors.append(f"{name.upper()} must be 0-23: {value}")
    for name in ("weekly_notification_minute", "daily_greeting_minute"):
        value = getattr(settings, name)
        if not 0 <= value <= 59:
            errors.append(f"{name.upper()} must be 0-59: {value}")

    try:
        ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        errors.append(f"TIMEZONE is not a known IANA time zone: '{settings.timezone}'")

    # -- Delivery ----------------------------------------------------------
    if settings.dispatch_timeout_seconds <= 0:
        errors.append(
            f"DISPATCH_TIMEOUT_SECONDS must be positive: {settings.dispatch_timeout_seconds}"
        )
    if settings.max_concurrent_dispatches < 1:
        errors.append(
            f"MAX_CONCURRENT_DISPATCHES must be at least 1: "
            f"{settings.max_concurrent_dispatches}"
        )

    if settings.default_life_expectancy <= 0:
        errors.append(
            f"DEFAULT_LIFE_EXPECTANCY must be a positive number of years: "
            f"{settings.default_life_expectancy}"
        )

    return errors


def ensure_valid_config(settings: Settings, require_token: bool = True) -> None:
    """Raise ConfigurationError listing every problem found by validate_config."""
    errors = validate_config(settings, require_token=require_token)
    if errors:
        for error in errors:
            logger.error("Configuration error: %s", error)
        raise ConfigurationError("; ".join(errors))


def _redact(secret: str) -> str:
    """Return first 4 characters followed by '***', or '<empty>' if blank."""
    if not secret:
        return "<empty>"
    return secret[:4] + "***"


def _db_type(database_url: str) -> str:
    """Extract the database backend name from a SQLAlchemy URL."""
    if not database_url:
        return "none"
    scheme = database_url.split("://")[0] if "://" in database_url else database_url
    # e.g. "sqlite+aiosqlite" -> "sqlite"
    return scheme.split("+")[0].lower()


def log_config_summary(settings: Settings) -> None:
    """Log an INFO-level summary of loaded configuration with secrets redacted."""
    summary_lines = [
        f"environment={settings.environment}",
        f"database={_db_type(settings.database_url)}",
        f"weekly=day{settings.weekly_notification_day}@"
        f"{settings.weekly_notification_hour:02d}:{settings.weekly_notification_minute:02d}",
        f"daily={settings.daily_greeting_hour:02d}:{settings.daily_greeting_minute:02d}",
        f"timezone={settings.timezone}",
        f"catalog={settings.region_catalog_path or 'builtin'}",
        f"bot_token={_redact(settings.telegram_bot_token)}",
    ]

    logger.info("Config loaded: %s", " | ".join(summary_lines))
