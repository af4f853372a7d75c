"""Competition window lifecycle.

Windows move Scheduled -> Active -> Closed. This module is the only writer of
``CompetitionWindow.is_active``; every write goes through ``_ROTATION_LOCK``
and the table's partial unique index backs the one-active-window rule at the
storage level.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.config import DEFAULT_WINDOW_TIMEZONE
from ..core.time import ensure_utc, isoformat, resolve_zone
from ..models import CompetitionWindow, Winner
from .errors import ConstraintError, NotFoundError
from .winners import get_winner, select_winner

logger = logging.getLogger(__name__)

_ROTATION_LOCK = threading.Lock()


@dataclass
class CloseResult:
    window: CompetitionWindow
    winner: Optional[Winner]
    next_window: Optional[CompetitionWindow]
    already_closed: bool = False


def window_is_open(window: Optional[CompetitionWindow], now: datetime) -> bool:
    """Active flag set and ``now`` inside ``[start_at, end_at)``."""

    if window is None or not window.is_active or window.closed_at is not None:
        return False
    now = ensure_utc(now)
    return ensure_utc(window.start_at) <= now < ensure_utc(window.end_at)


def get_window(session: Session, window_id: int) -> CompetitionWindow:
    window = session.get(CompetitionWindow, window_id)
    if window is None:
        raise NotFoundError(NotFoundError.WINDOW_NOT_FOUND, f"Window {window_id} not found")
    return window


def get_active_window(session: Session, now: datetime) -> Optional[CompetitionWindow]:
    """The window accepting entries and votes right now, if any."""

    window = session.exec(
        select(CompetitionWindow).where(CompetitionWindow.is_active == True)  # noqa: E712
    ).first()
    return window if window_is_open(window, now) else None


def find_due_window(session: Session, now: datetime) -> Optional[CompetitionWindow]:
    """Active window whose end time has passed; the close trigger's default."""

    return session.exec(
        select(CompetitionWindow)
        .where(CompetitionWindow.is_active == True)  # noqa: E712
        .where(CompetitionWindow.end_at <= ensure_utc(now))
        .order_by(CompetitionWindow.end_at.desc())
        .limit(1)
    ).first()


def create_window(
    session: Session,
    *,
    theme: str,
    start_at: datetime,
    end_at: datetime,
    description: Optional[str] = None,
    timezone: Optional[str] = None,
    next_window_id: Optional[int] = None,
    coin_reward: Optional[int] = None,
    xp_reward: Optional[int] = None,
    previous_window_id: Optional[int] = None,
) -> CompetitionWindow:
    """Create a scheduled window. It stays inactive until rotated into.

    With ``previous_window_id`` the new window is linked as that window's
    successor in the same transaction, so a bad link stores nothing.
    """

    theme = (theme or "").strip()
    if not theme:
        raise ValueError("Theme is required")
    start_at = ensure_utc(start_at)
    end_at = ensure_utc(end_at)
    if end_at <= start_at:
        raise ValueError("end_at must be after start_at")
    tz_name = timezone or DEFAULT_WINDOW_TIMEZONE
    resolve_zone(tz_name)
    for label, value in (("coin_reward", coin_reward), ("xp_reward", xp_reward)):
        if value is not None and value < 0:
            raise ValueError(f"{label} cannot be negative")
    if next_window_id is not None:
        get_window(session, next_window_id)
    previous = get_window(session, previous_window_id) if previous_window_id is not None else None

    window = CompetitionWindow(
        theme=theme[:80],
        description=description,
        start_at=start_at,
        end_at=end_at,
        timezone=tz_name,
        next_window_id=next_window_id,
        coin_reward=coin_reward,
        xp_reward=xp_reward,
    )
    session.add(window)
    if previous is not None:
        session.flush()
        previous.next_window_id = window.id
        session.add(previous)
    session.commit()
    session.refresh(window)
    logger.info("Scheduled window %s (%s) %s -> %s", window.id, window.theme, start_at, end_at)
    if previous is not None:
        logger.info("Window %s now rotates into window %s", previous.id, window.id)
    return window


def link_next_window(
    session: Session, window_id: int, next_window_id: Optional[int]
) -> CompetitionWindow:
    """Point ``window_id`` at the window rotation should activate after it."""

    window = get_window(session, window_id)
    if next_window_id is not None:
        if next_window_id == window_id:
            raise ValueError("A window cannot follow itself")
        get_window(session, next_window_id)
    window.next_window_id = next_window_id
    session.add(window)
    session.commit()
    session.refresh(window)
    return window


def activate_window(session: Session, window_id: int, now: datetime) -> CompetitionWindow:
    """Bootstrap activation for when no window is active (first cycle, or after
    a cycle ended with nothing linked)."""

    with _ROTATION_LOCK:
        window = get_window(session, window_id)
        if window.closed_at is not None:
            raise ConstraintError(ConstraintError.WINDOW_CLOSED, "Window is already closed")
        if window.is_active:
            return window

        current = session.exec(
            select(CompetitionWindow).where(CompetitionWindow.is_active == True)  # noqa: E712
        ).first()
        if current is not None:
            raise ConstraintError(
                ConstraintError.ACTIVE_WINDOW_CONFLICT,
                f"Window {current.id} is already active",
            )

        window.is_active = True
        window.activated_at = ensure_utc(now)
        session.add(window)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConstraintError(
                ConstraintError.ACTIVE_WINDOW_CONFLICT, "Another window is already active"
            ) from exc
        session.refresh(window)
        logger.info("Activated window %s (%s)", window.id, window.theme)
        return window


def _closed_result(session: Session, window: CompetitionWindow) -> CloseResult:
    next_window = (
        session.get(CompetitionWindow, window.next_window_id)
        if window.next_window_id is not None
        else None
    )
    return CloseResult(
        window=window,
        winner=get_winner(session, window.id),
        next_window=next_window,
        already_closed=True,
    )


def close_and_rotate(session: Session, window_id: int, now: datetime) -> CloseResult:
    """Close ``window_id`` (select and pay its winner), then hand activation to
    its linked successor.

    Retrying after any partial failure is safe. Once the window is closed a
    repeat call changes nothing and returns the stored outcome.
    """

    with _ROTATION_LOCK:
        window = get_window(session, window_id)
        if window.closed_at is not None:
            logger.info("Window %s already closed; returning stored result", window_id)
            return _closed_result(session, window)
        if not window.is_active:
            raise ConstraintError(
                ConstraintError.WINDOW_NOT_ACTIVE,
                f"Window {window_id} has not been activated",
            )

        winner = select_winner(session, window_id, now)

        window = get_window(session, window_id)
        window.is_active = False
        window.closed_at = ensure_utc(now)
        session.add(window)
        session.flush()

        next_window: Optional[CompetitionWindow] = None
        if window.next_window_id is not None:
            next_window = session.get(CompetitionWindow, window.next_window_id)
            if next_window is None or next_window.closed_at is not None:
                logger.warning(
                    "Window %s links to unusable window %s; nothing activated",
                    window_id,
                    window.next_window_id,
                )
                next_window = None
            else:
                next_window.is_active = True
                next_window.activated_at = ensure_utc(now)
                session.add(next_window)
                if ensure_utc(next_window.end_at) <= ensure_utc(now):
                    logger.warning("Activated window %s whose end time has already passed", next_window.id)

        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConstraintError(
                ConstraintError.ACTIVE_WINDOW_CONFLICT,
                "Rotation would leave more than one active window",
            ) from exc

        session.refresh(window)
        if next_window is not None:
            session.refresh(next_window)
            logger.info("Rotated from window %s to window %s", window.id, next_window.id)
        else:
            logger.warning("Window %s closed with no next window; no competition is active", window.id)

        return CloseResult(window=window, winner=winner, next_window=next_window)


def time_remaining(window: CompetitionWindow, now: datetime) -> Dict[str, int]:
    """Countdown to the end of the window, all zeros once it has passed."""

    seconds_left = int((ensure_utc(window.end_at) - ensure_utc(now)).total_seconds())
    if seconds_left <= 0:
        return {"days": 0, "hours": 0, "minutes": 0, "seconds": 0}
    days, rest = divmod(seconds_left, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return {"days": days, "hours": hours, "minutes": minutes, "seconds": seconds}


def window_to_dict(window: CompetitionWindow) -> Dict[str, Any]:
    """Serialise a window to an API-friendly dict."""

    return {
        "id": window.id,
        "theme": window.theme,
        "description": window.description,
        "start_at": isoformat(window.start_at),
        "end_at": isoformat(window.end_at),
        "timezone": window.timezone,
        "status": window.status,
        "is_active": window.is_active,
        "next_window_id": window.next_window_id,
        "coin_reward": window.coin_reward,
        "xp_reward": window.xp_reward,
        "activated_at": isoformat(window.activated_at),
        "closed_at": isoformat(window.closed_at),
    }


__all__ = [
    "CloseResult",
    "activate_window",
    "close_and_rotate",
    "create_window",
    "find_due_window",
    "get_active_window",
    "get_window",
    "link_next_window",
    "time_remaining",
    "window_is_open",
    "window_to_dict",
]
