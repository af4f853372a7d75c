"""Read-only view of a user's reward ledger."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ...core import get_session
from ...services.ledger import list_transactions, reward_totals, transaction_to_dict

router = APIRouter(tags=["rewards"])


@router.get("/users/{user_id}/rewards")
def get_user_rewards(user_id: str, limit: int = 10, session: Session = Depends(get_session)):
    """Recent reward grants and lifetime totals per unit."""

    limit = max(1, min(limit, 100))
    return {
        "userId": user_id,
        "totals": reward_totals(session, user_id),
        "transactions": [
            transaction_to_dict(transaction)
            for transaction in list_transactions(session, user_id, limit=limit)
        ],
    }


__all__ = ["router"]
