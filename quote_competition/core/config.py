"""Application settings and environment helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List

from dotenv import load_dotenv

load_dotenv(override=False)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc


def _split_csv(raw: str | None) -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


# Storage --------------------------------------------------------------------
_PROJECT_ROOT = Path(__file__).resolve().parents[2]
DATA_DIR = Path(os.getenv("DATA_DIR", str(_PROJECT_ROOT / "data")))
DATABASE_URL = os.getenv("DATABASE_URL") or f"sqlite:///{DATA_DIR / 'app.db'}"
DB_RESET = _env_bool("DB_RESET", False)


# Cross-origin access --------------------------------------------------------
# FRONTEND_ORIGIN can contain a comma-separated list for multi-domain deploys.
_frontend_origins = _split_csv(os.getenv("FRONTEND_ORIGIN"))
_additional_origins = _split_csv(os.getenv("ADDITIONAL_ALLOWED_ORIGINS"))

_local_dev_origins = [
    "http://localhost:8081",
    "http://127.0.0.1:8081",
    "http://localhost:19006",
    "http://127.0.0.1:19006",
]

ALLOWED_CORS_ORIGINS = _unique(
    [
        *_frontend_origins,
        *_additional_origins,
        *_local_dev_origins,
    ]
)


# Trigger credentials --------------------------------------------------------
# Shared secret presented as a Bearer token by the close/rotate scheduler and
# by admin tooling. Unset means every protected call is rejected.
CRON_SECRET = os.getenv("CRON_SECRET") or None


# Competition rules ----------------------------------------------------------
MAX_ENTRY_LENGTH = _env_int("MAX_ENTRY_LENGTH", 180)
WINNER_COIN_REWARD = _env_int("WINNER_COIN_REWARD", 100)
WINNER_XP_REWARD = _env_int("WINNER_XP_REWARD", 250)
DEFAULT_WINDOW_TIMEZONE = os.getenv("DEFAULT_WINDOW_TIMEZONE", "UTC")


# Runtime behaviour ----------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


__all__ = [
    "ALLOWED_CORS_ORIGINS",
    "CRON_SECRET",
    "DATABASE_URL",
    "DATA_DIR",
    "DB_RESET",
    "DEFAULT_WINDOW_TIMEZONE",
    "LOG_LEVEL",
    "MAX_ENTRY_LENGTH",
    "WINNER_COIN_REWARD",
    "WINNER_XP_REWARD",
]
