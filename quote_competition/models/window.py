"""Database model for competition windows."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, text
from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow

STATUS_SCHEDULED = "scheduled"
STATUS_ACTIVE = "active"
STATUS_CLOSED = "closed"


class CompetitionWindow(SQLModel, table=True):
    """Themed, time-boxed cycle during which entries and votes are accepted.

    Only the scheduler flips ``is_active``. The partial unique index keeps at
    most one active row across the whole table.
    """

    __tablename__ = "competition_window"
    __table_args__ = (
        Index(
            "uq_competition_window_single_active",
            "is_active",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    id: Optional[int] = ORMField(default=None, primary_key=True)
    theme: str = ORMField(max_length=80)
    description: Optional[str] = None
    start_at: datetime = ORMField(sa_type=DateTime(timezone=True), index=True)
    end_at: datetime = ORMField(sa_type=DateTime(timezone=True), index=True)
    is_active: bool = ORMField(default=False)
    next_window_id: Optional[int] = ORMField(
        default=None, foreign_key="competition_window.id"
    )
    timezone: str = ORMField(default="UTC", max_length=64)
    coin_reward: Optional[int] = None
    xp_reward: Optional[int] = None
    activated_at: Optional[datetime] = ORMField(
        default=None, sa_type=DateTime(timezone=True)
    )
    closed_at: Optional[datetime] = ORMField(
        default=None, sa_type=DateTime(timezone=True)
    )
    created_at: datetime = ORMField(
        default_factory=utcnow, sa_type=DateTime(timezone=True)
    )

    @property
    def status(self) -> str:
        if self.closed_at is not None:
            return STATUS_CLOSED
        if self.is_active:
            return STATUS_ACTIVE
        return STATUS_SCHEDULED


__all__ = [
    "CompetitionWindow",
    "STATUS_ACTIVE",
    "STATUS_CLOSED",
    "STATUS_SCHEDULED",
]
