"""Core configuration and infrastructure helpers."""

from .config import (
    ALLOWED_CORS_ORIGINS,
    CRON_SECRET,
    DATABASE_URL,
    DB_RESET,
    DEFAULT_WINDOW_TIMEZONE,
    LOG_LEVEL,
    MAX_ENTRY_LENGTH,
    WINNER_COIN_REWARD,
    WINNER_XP_REWARD,
)
from .database import engine, get_session
from .logging import configure_logging
from .time import ensure_utc, get_now, isoformat, local_day, utcnow

__all__ = [
    "ALLOWED_CORS_ORIGINS",
    "CRON_SECRET",
    "DATABASE_URL",
    "DB_RESET",
    "DEFAULT_WINDOW_TIMEZONE",
    "LOG_LEVEL",
    "MAX_ENTRY_LENGTH",
    "WINNER_COIN_REWARD",
    "WINNER_XP_REWARD",
    "configure_logging",
    "engine",
    "ensure_utc",
    "get_now",
    "get_session",
    "isoformat",
    "local_day",
    "utcnow",
]
