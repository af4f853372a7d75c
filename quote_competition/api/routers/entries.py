"""Entry submission endpoint."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ...core import get_now, get_session
from ...services.entries import entry_to_dict, submit_entry
from ...services.errors import CompetitionError, ValidationError
from ...services.scheduler import get_active_window
from ..errors import bad_request, http_error

router = APIRouter(prefix="/competition", tags=["entries"])


@router.post("/entries", status_code=201)
def create_entry(
    body: Dict[str, Any],
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    """Submit a quote to the currently active window."""

    user_id = str(body.get("userId") or "").strip()
    if not user_id:
        raise bad_request("userId is required")

    try:
        active = get_active_window(session, now)
        if active is None:
            raise ValidationError(
                ValidationError.WINDOW_INACTIVE, "No active quote theme found"
            )
        entry = submit_entry(session, user_id[:64], active.id, body.get("text"), now)
    except CompetitionError as exc:
        raise http_error(exc) from exc

    return {"ok": True, "entry": entry_to_dict(entry, votes=0)}


__all__ = ["router"]
