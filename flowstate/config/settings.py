"""
Runtime settings for FlowState.

Settings are read from environment variables once at startup and
passed explicitly to whatever needs them.

Environment:
    FLOWSTATE_DATABASE_URL              SQLAlchemy async URL
    FLOWSTATE_TIMEZONE                  IANA zone for calendar-day boundaries
    FLOWSTATE_DEFAULT_SESSION_MINUTES   Timer length when no intervention applies
    FLOWSTATE_DEV_MODE                  "1" for human-readable logs
    LOG_LEVEL                           stdlib level name
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flowstate.lib.exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./flowstate.db"
DEFAULT_TIMEZONE = "UTC"
DEFAULT_SESSION_MINUTES = 5

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class Settings:
    """Application settings."""

    database_url: str = DEFAULT_DATABASE_URL
    timezone: str = DEFAULT_TIMEZONE
    default_session_minutes: int = DEFAULT_SESSION_MINUTES
    dev_mode: bool = False
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.default_session_minutes <= 0:
            raise ConfigurationError(
                f"default_session_minutes must be positive, got {self.default_session_minutes}"
            )
        if self.log_level not in _LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level: {self.log_level}")
        # Unknown zones raise here
        self.tzinfo  # noqa: B018

    @property
    def tzinfo(self) -> ZoneInfo:
        """The configured timezone."""
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown timezone: {self.timezone}") from e

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from FLOWSTATE_* environment variables."""
        raw_minutes = os.getenv("FLOWSTATE_DEFAULT_SESSION_MINUTES", str(DEFAULT_SESSION_MINUTES))
        try:
            minutes = int(raw_minutes)
        except ValueError as e:
            raise ConfigurationError(
                f"FLOWSTATE_DEFAULT_SESSION_MINUTES must be an integer, got {raw_minutes!r}"
            ) from e

        return cls(
            database_url=os.getenv("FLOWSTATE_DATABASE_URL", DEFAULT_DATABASE_URL),
            timezone=os.getenv("FLOWSTATE_TIMEZONE", DEFAULT_TIMEZONE),
            default_session_minutes=minutes,
            dev_mode=os.getenv("FLOWSTATE_DEV_MODE") == "1",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


__all__ = ["Settings", "DEFAULT_SESSION_MINUTES"]
