"""Database model for daily votes."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class Vote(SQLModel, table=True):
    """A voter's endorsement of an entry.

    ``window_id`` and ``cast_on`` are denormalised from the entry and the
    window timezone so the one-vote-per-day rule is a table constraint.
    """

    __tablename__ = "competition_vote"
    __table_args__ = (
        UniqueConstraint(
            "voter_id", "window_id", "cast_on", name="uq_vote_voter_window_day"
        ),
    )

    id: Optional[int] = ORMField(default=None, primary_key=True)
    entry_id: int = ORMField(foreign_key="competition_entry.id", index=True)
    window_id: int = ORMField(foreign_key="competition_window.id", index=True)
    voter_id: str = ORMField(max_length=64, index=True)
    cast_at: datetime = ORMField(
        default_factory=utcnow, sa_type=DateTime(timezone=True)
    )
    cast_on: date


__all__ = ["Vote"]
