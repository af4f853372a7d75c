"""Winner announcement trigger and hall-of-fame queries."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from ...core import get_now, get_session
from ...services.errors import CompetitionError, NotFoundError
from ...services.scheduler import close_and_rotate, find_due_window, window_to_dict
from ...services.winners import latest_winner, list_winners, winner_summary
from ..errors import bad_request, http_error
from ..security import require_trigger_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/competition", tags=["winners"])


@router.post("/close", dependencies=[Depends(require_trigger_secret)])
def close_competition(
    body: Optional[Dict[str, Any]] = Body(default=None),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    """Select the winner of a window and rotate to the next one.

    Without ``windowId`` the active window whose end time has passed is used.
    """

    raw_id = (body or {}).get("windowId")
    try:
        if raw_id is None:
            due = find_due_window(session, now)
            if due is None:
                raise NotFoundError(
                    NotFoundError.NO_ELIGIBLE_WINDOW,
                    "No eligible theme found for winner announcement",
                )
            window_id = due.id
        else:
            try:
                window_id = int(raw_id)
            except (TypeError, ValueError):
                raise bad_request("windowId must be an integer")
        result = close_and_rotate(session, window_id, now)
    except CompetitionError as exc:
        raise http_error(exc) from exc
    except OperationalError as exc:
        session.rollback()
        logger.exception("Storage failure while closing window %s", raw_id)
        raise HTTPException(
            503,
            {"code": "STORAGE_UNAVAILABLE", "message": "Retry the close trigger"},
            headers={"Retry-After": "30"},
        ) from exc

    winner = winner_summary(session, result.winner) if result.winner else None
    return {
        "success": winner is not None,
        "message": (
            "Winner announced successfully"
            if winner
            else "No winner selected: the window had no entries or no votes"
        ),
        "alreadyClosed": result.already_closed,
        "window": window_to_dict(result.window),
        "nextWindow": window_to_dict(result.next_window) if result.next_window else None,
        "winner": winner,
    }


@router.get("/winners/latest")
def get_latest_winner(session: Session = Depends(get_session)):
    """Most recently announced winner, or null before the first one."""

    winner = latest_winner(session)
    return {"winner": winner_summary(session, winner) if winner else None}


@router.get("/winners")
def get_hall_of_fame(
    limit: int = 10, offset: int = 0, session: Session = Depends(get_session)
):
    """Past winners, newest first."""

    limit = max(1, min(limit, 50))
    offset = max(offset, 0)
    return {
        "winners": [
            winner_summary(session, winner)
            for winner in list_winners(session, limit=limit, offset=offset)
        ],
        "limit": limit,
        "offset": offset,
    }


__all__ = ["router"]
