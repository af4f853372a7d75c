"""Daily rate-limited voting.

A voter gets one vote per window per calendar day, whichever entry it goes
to. The day is taken in the window's timezone and stored on the vote so the
unique constraint on (voter, window, day) does the enforcing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Set

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from ..core.time import ensure_utc, local_day
from ..models import CompetitionWindow, Entry, Vote
from .errors import ConstraintError, NotFoundError
from .scheduler import window_is_open

logger = logging.getLogger(__name__)


@dataclass
class VoteResult:
    vote: Vote
    entry_id: int
    tally: int


def entry_vote_count(session: Session, entry_id: int) -> int:
    return int(
        session.exec(select(func.count(Vote.id)).where(Vote.entry_id == entry_id)).one()
    )


def has_voted_today(
    session: Session, voter_id: str, window: CompetitionWindow, now: datetime
) -> bool:
    today = local_day(now, window.timezone)
    existing = session.exec(
        select(Vote.id).where(
            Vote.voter_id == voter_id,
            Vote.window_id == window.id,
            Vote.cast_on == today,
        )
    ).first()
    return existing is not None


def voted_entry_ids(session: Session, voter_id: str, window_id: int) -> Set[int]:
    """Entries in the window this voter has backed on any day."""

    rows: List[int] = session.exec(
        select(Vote.entry_id).where(Vote.voter_id == voter_id, Vote.window_id == window_id)
    ).all()
    return set(rows)


def vote(session: Session, voter_id: str, entry_id: int, now: datetime) -> VoteResult:
    entry = session.get(Entry, entry_id)
    if entry is None:
        raise NotFoundError(NotFoundError.ENTRY_NOT_FOUND, "Quote entry not found")

    window = session.get(CompetitionWindow, entry.window_id)
    if not window_is_open(window, now):
        raise ConstraintError(ConstraintError.WINDOW_CLOSED, "Voting for this theme has closed")

    if entry.author_id == voter_id:
        raise ConstraintError(ConstraintError.SELF_VOTE, "You cannot vote for your own quote")

    if has_voted_today(session, voter_id, window, now):
        raise ConstraintError(ConstraintError.ALREADY_VOTED, "You have already voted today")

    ballot = Vote(
        entry_id=entry.id,
        window_id=window.id,
        voter_id=voter_id,
        cast_at=ensure_utc(now),
        cast_on=local_day(now, window.timezone),
    )
    session.add(ballot)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.info("Concurrent second vote by %s in window %s rejected", voter_id, window.id)
        raise ConstraintError(
            ConstraintError.ALREADY_VOTED, "You have already voted today"
        ) from exc

    session.refresh(ballot)
    return VoteResult(vote=ballot, entry_id=entry.id, tally=entry_vote_count(session, entry.id))


__all__ = [
    "VoteResult",
    "entry_vote_count",
    "has_voted_today",
    "vote",
    "voted_entry_ids",
]
