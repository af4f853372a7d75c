"""Database model for announced winners."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class Winner(SQLModel, table=True):
    """Selected entry for a closed window. Written once, never updated."""

    __tablename__ = "competition_winner"

    id: Optional[int] = ORMField(default=None, primary_key=True)
    window_id: int = ORMField(foreign_key="competition_window.id", unique=True)
    entry_id: int = ORMField(foreign_key="competition_entry.id")
    author_id: str = ORMField(max_length=64, index=True)
    votes_count: int
    coins_awarded: int = 0
    xp_awarded: int = 0
    coin_transaction_id: Optional[int] = ORMField(
        default=None, foreign_key="reward_transaction.id"
    )
    xp_transaction_id: Optional[int] = ORMField(
        default=None, foreign_key="reward_transaction.id"
    )
    announced_at: datetime = ORMField(
        default_factory=utcnow, sa_type=DateTime(timezone=True), index=True
    )


__all__ = ["Winner"]
