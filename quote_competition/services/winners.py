"""Tally, winner selection and winner payout.

``select_winner`` is safe to call any number of times for the same window:
the Winner row is unique per window, its rewards are keyed on the winner id,
and both are committed in one transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from ..core.config import WINNER_COIN_REWARD, WINNER_XP_REWARD
from ..core.time import ensure_utc, isoformat
from ..models import CompetitionWindow, Entry, RewardUnit, Vote, Winner
from .errors import NotFoundError
from .ledger import issue_reward, winner_reward_key

logger = logging.getLogger(__name__)


def tally(session: Session, window_id: int) -> Dict[int, int]:
    """Votes per entry for every entry in the window, zero-vote entries included."""

    rows = session.exec(
        select(Entry.id, func.count(Vote.id))
        .join(Vote, Vote.entry_id == Entry.id, isouter=True)
        .where(Entry.window_id == window_id)
        .group_by(Entry.id)
    ).all()
    return {entry_id: int(count) for entry_id, count in rows}


def get_winner(session: Session, window_id: int) -> Optional[Winner]:
    return session.exec(select(Winner).where(Winner.window_id == window_id)).first()


def rank_entries(entries: List[Entry], counts: Dict[int, int]) -> List[Entry]:
    """Order entries best first.

    Most votes wins; ties go to the earliest submission, then the smallest
    author id, then the smallest entry id.
    """

    return sorted(
        entries,
        key=lambda entry: (
            -counts.get(entry.id, 0),
            ensure_utc(entry.created_at),
            entry.author_id,
            entry.id,
        ),
    )


def reward_amounts(window: CompetitionWindow) -> Dict[RewardUnit, int]:
    coins = window.coin_reward if window.coin_reward is not None else WINNER_COIN_REWARD
    xp = window.xp_reward if window.xp_reward is not None else WINNER_XP_REWARD
    return {RewardUnit.COINS: max(coins, 0), RewardUnit.XP: max(xp, 0)}


def _pay_winner(session: Session, winner: Winner, window: CompetitionWindow) -> None:
    """Issue both reward kinds for ``winner`` inside the current transaction."""

    reason = f"Quote competition winner: {window.theme}"[:120]
    amounts = {RewardUnit.COINS: winner.coins_awarded, RewardUnit.XP: winner.xp_awarded}
    for unit, amount in amounts.items():
        if amount <= 0:
            continue
        transaction = issue_reward(
            session,
            recipient_id=winner.author_id,
            amount=amount,
            unit=unit,
            reason=reason,
            idempotency_key=winner_reward_key(winner.id, unit),
            commit=False,
        )
        if unit is RewardUnit.COINS:
            winner.coin_transaction_id = transaction.id
        else:
            winner.xp_transaction_id = transaction.id
    session.add(winner)


def _repair_rewards(session: Session, winner: Winner, window: CompetitionWindow) -> None:
    missing_coins = winner.coins_awarded > 0 and winner.coin_transaction_id is None
    missing_xp = winner.xp_awarded > 0 and winner.xp_transaction_id is None
    if not (missing_coins or missing_xp):
        return
    logger.warning("Winner %s for window %s is missing rewards; reissuing", winner.id, window.id)
    _pay_winner(session, winner, window)
    session.commit()
    session.refresh(winner)


def select_winner(
    session: Session, window_id: int, now: datetime
) -> Optional[Winner]:
    """Pick and pay the winner of a window exactly once.

    Returns None when the window had no entries or no votes at all; that is a
    normal way for a window to close.
    """

    window = session.get(CompetitionWindow, window_id)
    if window is None:
        raise NotFoundError(NotFoundError.WINDOW_NOT_FOUND, f"Window {window_id} not found")

    existing = get_winner(session, window_id)
    if existing is not None:
        logger.info("Winner for window %s already selected (winner %s)", window_id, existing.id)
        _repair_rewards(session, existing, window)
        return existing

    counts = tally(session, window_id)
    if not counts or all(count == 0 for count in counts.values()):
        logger.info("Window %s closes without a winner (%d entries, no votes)", window_id, len(counts))
        return None

    entries = session.exec(select(Entry).where(Entry.window_id == window_id)).all()
    best = rank_entries(list(entries), counts)[0]
    amounts = reward_amounts(window)

    winner = Winner(
        window_id=window_id,
        entry_id=best.id,
        author_id=best.author_id,
        votes_count=counts[best.id],
        coins_awarded=amounts[RewardUnit.COINS],
        xp_awarded=amounts[RewardUnit.XP],
        announced_at=ensure_utc(now),
    )
    session.add(winner)
    try:
        session.flush()
        _pay_winner(session, winner, window)
        session.commit()
    except IntegrityError:
        session.rollback()
        existing = get_winner(session, window_id)
        if existing is None:
            raise
        logger.info("Concurrent selection for window %s resolved to winner %s", window_id, existing.id)
        return existing

    session.refresh(winner)
    logger.info(
        "Window %s winner: entry %s by %s with %d votes",
        window_id,
        winner.entry_id,
        winner.author_id,
        winner.votes_count,
    )
    return winner


def latest_winner(session: Session) -> Optional[Winner]:
    return session.exec(
        select(Winner).order_by(Winner.announced_at.desc(), Winner.id.desc()).limit(1)
    ).first()


def list_winners(session: Session, limit: int = 10, offset: int = 0) -> List[Winner]:
    """Hall of fame, most recent first."""

    return list(
        session.exec(
            select(Winner)
            .order_by(Winner.announced_at.desc(), Winner.id.desc())
            .offset(offset)
            .limit(limit)
        ).all()
    )


def winner_summary(session: Session, winner: Winner) -> Dict[str, Any]:
    entry = session.get(Entry, winner.entry_id)
    window = session.get(CompetitionWindow, winner.window_id)
    return {
        "id": winner.id,
        "window_id": winner.window_id,
        "theme": window.theme if window else None,
        "entry_id": winner.entry_id,
        "quote": entry.text if entry else None,
        "author_id": winner.author_id,
        "votes": winner.votes_count,
        "coins_awarded": winner.coins_awarded,
        "xp_awarded": winner.xp_awarded,
        "announced_at": isoformat(winner.announced_at),
    }


__all__ = [
    "get_winner",
    "latest_winner",
    "list_winners",
    "rank_entries",
    "reward_amounts",
    "select_winner",
    "tally",
    "winner_summary",
]
