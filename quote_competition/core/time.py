"""Clock helpers shared by models, services and routers."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utcnow() -> datetime:
    """Return the current UTC datetime."""

    return datetime.now(timezone.utc)


def get_now() -> datetime:
    """FastAPI dependency for the request clock."""

    return utcnow()


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach or convert to UTC. Naive values are taken to already be UTC.

    SQLite hands datetimes back without tzinfo, so anything read from the
    database goes through here before it is compared with an aware value.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc


def local_day(moment: datetime, tz_name: str) -> date:
    """Calendar day of ``moment`` as seen in ``tz_name``."""

    return ensure_utc(moment).astimezone(resolve_zone(tz_name)).date()


def isoformat(value: Optional[datetime]) -> Optional[str]:
    value = ensure_utc(value)
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


__all__ = [
    "ensure_utc",
    "get_now",
    "isoformat",
    "local_day",
    "resolve_zone",
    "utcnow",
]
