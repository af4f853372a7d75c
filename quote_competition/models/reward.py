"""Database model for the reward ledger."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class RewardUnit(str, enum.Enum):
    """Point-like units a reward can be paid in."""

    COINS = "coins"  # currency
    XP = "xp"  # experience


class RewardTransaction(SQLModel, table=True):
    """Append-only grant of coins or XP to a user."""

    __tablename__ = "reward_transaction"

    id: Optional[int] = ORMField(default=None, primary_key=True)
    recipient_id: str = ORMField(max_length=64, index=True)
    amount: int
    unit: str = ORMField(max_length=16)
    reason: str = ORMField(max_length=120)
    idempotency_key: str = ORMField(max_length=120, unique=True)
    created_at: datetime = ORMField(
        default_factory=utcnow, sa_type=DateTime(timezone=True)
    )


__all__ = ["RewardTransaction", "RewardUnit"]
