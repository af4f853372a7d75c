"""Idempotent reward issuance.

The ledger records grants; it does not own anybody's wallet balance. Each
grant carries an idempotency key and the key column is unique, so replaying
an issuance (trigger retry, crash repair) hands back the stored transaction
instead of paying twice.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from ..core.time import isoformat
from ..models import RewardTransaction, RewardUnit

logger = logging.getLogger(__name__)


def winner_reward_key(winner_id: int, unit: RewardUnit | str) -> str:
    """Idempotency key for the reward of one kind paid to one winner."""

    return f"quote-winner:{winner_id}:{RewardUnit(unit).value}"


def find_by_key(session: Session, idempotency_key: str) -> Optional[RewardTransaction]:
    return session.exec(
        select(RewardTransaction).where(
            RewardTransaction.idempotency_key == idempotency_key
        )
    ).first()


def issue_reward(
    session: Session,
    *,
    recipient_id: str,
    amount: int,
    unit: RewardUnit | str,
    reason: str,
    idempotency_key: str,
    commit: bool = True,
) -> RewardTransaction:
    """Record a grant once per ``idempotency_key``.

    With ``commit=False`` the new row is only flushed, so it becomes part of
    the caller's transaction and a key collision surfaces as
    ``IntegrityError`` for the caller to resolve.
    """

    unit = RewardUnit(unit)
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValueError(f"Reward amount must be a positive integer, got {amount!r}")
    if not recipient_id:
        raise ValueError("Reward recipient is required")

    existing = find_by_key(session, idempotency_key)
    if existing is not None:
        logger.info("Reward %s already issued as transaction %s", idempotency_key, existing.id)
        return existing

    transaction = RewardTransaction(
        recipient_id=recipient_id,
        amount=amount,
        unit=unit.value,
        reason=reason[:120],
        idempotency_key=idempotency_key,
    )
    session.add(transaction)

    if not commit:
        session.flush()
        return transaction

    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        existing = find_by_key(session, idempotency_key)
        if existing is None:
            raise
        logger.info("Concurrent issuance of %s resolved to transaction %s", idempotency_key, existing.id)
        return existing

    session.refresh(transaction)
    logger.info(
        "Issued %s %s to %s (%s)", transaction.amount, transaction.unit, recipient_id, reason
    )
    return transaction


def list_transactions(
    session: Session, recipient_id: str, limit: int = 10
) -> List[RewardTransaction]:
    """Most recent grants for a user, newest first."""

    return list(
        session.exec(
            select(RewardTransaction)
            .where(RewardTransaction.recipient_id == recipient_id)
            .order_by(RewardTransaction.created_at.desc(), RewardTransaction.id.desc())
            .limit(limit)
        ).all()
    )


def reward_totals(session: Session, recipient_id: str) -> Dict[str, int]:
    """Sum of everything ever granted to a user, per unit."""

    totals = {unit.value: 0 for unit in RewardUnit}
    rows = session.exec(
        select(RewardTransaction.unit, func.sum(RewardTransaction.amount))
        .where(RewardTransaction.recipient_id == recipient_id)
        .group_by(RewardTransaction.unit)
    ).all()
    for unit, total in rows:
        totals[unit] = int(total or 0)
    return totals


def transaction_to_dict(transaction: RewardTransaction) -> Dict[str, object]:
    return {
        "id": transaction.id,
        "recipient_id": transaction.recipient_id,
        "amount": transaction.amount,
        "unit": transaction.unit,
        "reason": transaction.reason,
        "created_at": isoformat(transaction.created_at),
    }


__all__ = [
    "find_by_key",
    "issue_reward",
    "list_transactions",
    "reward_totals",
    "transaction_to_dict",
    "winner_reward_key",
]
