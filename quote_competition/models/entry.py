"""Database model for competition entries."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class Entry(SQLModel, table=True):
    """One participant's quote for a given window."""

    __tablename__ = "competition_entry"
    __table_args__ = (
        UniqueConstraint("window_id", "author_id", name="uq_entry_window_author"),
    )

    id: Optional[int] = ORMField(default=None, primary_key=True)
    window_id: int = ORMField(foreign_key="competition_window.id", index=True)
    author_id: str = ORMField(max_length=64, index=True)
    text: str
    created_at: datetime = ORMField(
        default_factory=utcnow, sa_type=DateTime(timezone=True)
    )


__all__ = ["Entry"]
