"""Voting endpoint."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ...core import get_now, get_session, isoformat
from ...services.errors import CompetitionError
from ...services.voting import vote
from ..errors import bad_request, http_error

router = APIRouter(prefix="/competition", tags=["votes"])


@router.post("/votes")
def cast_vote(
    body: Dict[str, Any],
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    """Cast today's vote for an entry."""

    user_id = str(body.get("userId") or "").strip()
    if not user_id:
        raise bad_request("userId is required")
    try:
        entry_id = int(body.get("entryId"))
    except (TypeError, ValueError):
        raise bad_request("entryId is required")

    try:
        result = vote(session, user_id[:64], entry_id, now)
    except CompetitionError as exc:
        raise http_error(exc) from exc

    return {
        "ok": True,
        "entryId": result.entry_id,
        "tally": result.tally,
        "vote": {
            "id": result.vote.id,
            "cast_at": isoformat(result.vote.cast_at),
            "cast_on": result.vote.cast_on.isoformat(),
        },
    }


__all__ = ["router"]
