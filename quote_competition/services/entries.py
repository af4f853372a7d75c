"""Entry submission for the active window."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.config import MAX_ENTRY_LENGTH
from ..core.time import ensure_utc, isoformat
from ..models import Entry
from .errors import ValidationError
from .scheduler import get_active_window

logger = logging.getLogger(__name__)


def normalize_text(text: Optional[str]) -> str:
    """Trim and check entry text, raising ``EMPTY`` or ``TOO_LONG``."""

    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError(ValidationError.EMPTY, "Quote text is required")
    if len(cleaned) > MAX_ENTRY_LENGTH:
        raise ValidationError(
            ValidationError.TOO_LONG,
            f"Quote must be {MAX_ENTRY_LENGTH} characters or less",
        )
    return cleaned


def get_user_entry(session: Session, user_id: str, window_id: int) -> Optional[Entry]:
    return session.exec(
        select(Entry).where(Entry.window_id == window_id, Entry.author_id == user_id)
    ).first()


def list_entries(session: Session, window_id: int) -> List[Entry]:
    return list(
        session.exec(
            select(Entry)
            .where(Entry.window_id == window_id)
            .order_by(Entry.created_at, Entry.id)
        ).all()
    )


def submit_entry(
    session: Session,
    user_id: str,
    window_id: Optional[int],
    text: Optional[str],
    now: datetime,
) -> Entry:
    """Store the single entry ``user_id`` may make in ``window_id``."""

    cleaned = normalize_text(text)

    active = get_active_window(session, now)
    if active is None or window_id is None or active.id != window_id:
        raise ValidationError(
            ValidationError.WINDOW_INACTIVE, "No active quote competition for this window"
        )

    if get_user_entry(session, user_id, window_id) is not None:
        raise ValidationError(
            ValidationError.DUPLICATE,
            "You have already submitted a quote for this week's theme",
        )

    entry = Entry(window_id=window_id, author_id=user_id, text=cleaned, created_at=ensure_utc(now))
    session.add(entry)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.info("Concurrent duplicate entry by %s in window %s", user_id, window_id)
        raise ValidationError(
            ValidationError.DUPLICATE,
            "You have already submitted a quote for this week's theme",
        ) from exc

    session.refresh(entry)
    logger.info("Entry %s submitted by %s for window %s", entry.id, user_id, window_id)
    return entry


def entry_to_dict(entry: Entry, votes: Optional[int] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": entry.id,
        "window_id": entry.window_id,
        "author_id": entry.author_id,
        "text": entry.text,
        "created_at": isoformat(entry.created_at),
    }
    if votes is not None:
        payload["votes"] = votes
    return payload


__all__ = [
    "entry_to_dict",
    "get_user_entry",
    "list_entries",
    "normalize_text",
    "submit_entry",
]
