"""Competition window queries and admin scheduling endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ...core import get_now, get_session
from ...models import CompetitionWindow
from ...services.entries import entry_to_dict, get_user_entry, list_entries
from ...services.errors import CompetitionError
from ...services.scheduler import (
    activate_window,
    create_window,
    get_active_window,
    get_window,
    time_remaining,
    window_to_dict,
)
from ...services.voting import has_voted_today, voted_entry_ids
from ...services.winners import get_winner, tally, winner_summary
from ..errors import bad_request, http_error
from ..security import require_trigger_secret

router = APIRouter(prefix="/competition", tags=["windows"])


def _parse_datetime(raw: Any, field: str) -> datetime:
    if not raw or not isinstance(raw, str):
        raise bad_request(f"{field} is required")
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise bad_request(f"{field} must be an ISO 8601 timestamp")


def _optional_int(raw: Any, field: str) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise bad_request(f"{field} must be an integer")


def _window_detail(session: Session, window: CompetitionWindow) -> Dict[str, Any]:
    counts = tally(session, window.id)
    entries = [
        entry_to_dict(entry, votes=counts.get(entry.id, 0))
        for entry in list_entries(session, window.id)
    ]
    winner = get_winner(session, window.id)
    return {
        "window": window_to_dict(window),
        "entries": entries,
        "winner": winner_summary(session, winner) if winner else None,
    }


@router.get("/active")
def get_active(
    userId: Optional[str] = None,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    """Current window with live tallies, plus the viewer's own state."""

    window = get_active_window(session, now)
    if window is None:
        return {"window": None, "entries": [], "timeRemaining": None, "viewer": None}

    detail = _window_detail(session, window)
    detail["timeRemaining"] = time_remaining(window, now)
    detail["viewer"] = None
    if userId:
        voted = voted_entry_ids(session, userId, window.id)
        for entry in detail["entries"]:
            entry["has_voted"] = entry["id"] in voted
        own = get_user_entry(session, userId, window.id)
        detail["viewer"] = {
            "userId": userId,
            "entryId": own.id if own else None,
            "hasVotedToday": has_voted_today(session, userId, window, now),
        }
    return detail


@router.get("/windows/{window_id}")
def get_window_detail(window_id: int, session: Session = Depends(get_session)):
    """Any window with its entries, tallies and winner."""

    try:
        window = get_window(session, window_id)
    except CompetitionError as exc:
        raise http_error(exc) from exc
    return _window_detail(session, window)


@router.post("/windows", status_code=201, dependencies=[Depends(require_trigger_secret)])
def schedule_window(body: Dict[str, Any], session: Session = Depends(get_session)):
    """Create a scheduled window. Admin only."""

    try:
        window = create_window(
            session,
            theme=body.get("theme") or "",
            description=body.get("description"),
            start_at=_parse_datetime(body.get("startAt"), "startAt"),
            end_at=_parse_datetime(body.get("endAt"), "endAt"),
            timezone=body.get("timezone"),
            next_window_id=_optional_int(body.get("nextWindowId"), "nextWindowId"),
            coin_reward=_optional_int(body.get("coinReward"), "coinReward"),
            xp_reward=_optional_int(body.get("xpReward"), "xpReward"),
            previous_window_id=_optional_int(body.get("previousWindowId"), "previousWindowId"),
        )
    except CompetitionError as exc:
        raise http_error(exc) from exc
    except ValueError as exc:
        raise bad_request(str(exc)) from exc
    return window_to_dict(window)


@router.post("/windows/{window_id}/activate", dependencies=[Depends(require_trigger_secret)])
def activate(
    window_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    """Activate a scheduled window when nothing else is active. Admin only."""

    try:
        window = activate_window(session, window_id, now)
    except CompetitionError as exc:
        raise http_error(exc) from exc
    return window_to_dict(window)


__all__ = ["router"]
