"""Tests for idempotent reward issuance."""

import pytest
from sqlmodel import select

from quote_competition.models import RewardTransaction, RewardUnit
from quote_competition.services import ledger as ledger_service
from quote_competition.services.ledger import (
    find_by_key,
    issue_reward,
    list_transactions,
    reward_totals,
    winner_reward_key,
)


def _issue(session, key, amount=100, unit=RewardUnit.COINS, recipient="user-a"):
    return issue_reward(
        session,
        recipient_id=recipient,
        amount=amount,
        unit=unit,
        reason="Quote competition winner: Courage",
        idempotency_key=key,
    )


def test_issue_records_one_transaction(session):
    transaction = _issue(session, "quote-winner:1:coins")

    assert transaction.id is not None
    assert transaction.amount == 100
    assert transaction.unit == "coins"
    assert transaction.recipient_id == "user-a"


def test_replayed_key_returns_existing_transaction(session):
    first = _issue(session, "quote-winner:1:coins")
    second = _issue(session, "quote-winner:1:coins", amount=999)

    assert second.id == first.id
    assert second.amount == 100
    rows = session.exec(select(RewardTransaction)).all()
    assert len(rows) == 1


def test_distinct_keys_are_distinct_grants(session):
    _issue(session, winner_reward_key(1, RewardUnit.COINS))
    _issue(session, winner_reward_key(1, RewardUnit.XP), amount=250, unit=RewardUnit.XP)

    assert reward_totals(session, "user-a") == {"coins": 100, "xp": 250}
    assert reward_totals(session, "someone-else") == {"coins": 0, "xp": 0}


def test_winner_reward_key_is_deterministic():
    assert winner_reward_key(7, "xp") == "quote-winner:7:xp"
    assert winner_reward_key(7, RewardUnit.COINS) == "quote-winner:7:coins"


@pytest.mark.parametrize("amount", [0, -5, 2.5, True])
def test_rejects_non_positive_or_non_integer_amounts(session, amount):
    with pytest.raises(ValueError):
        _issue(session, "bad", amount=amount)


def test_rejects_unknown_unit(session):
    with pytest.raises(ValueError):
        _issue(session, "bad-unit", unit="gems")


def test_list_transactions_newest_first(session):
    _issue(session, "k1", amount=10)
    _issue(session, "k2", amount=20)
    _issue(session, "k3", amount=30)

    amounts = [t.amount for t in list_transactions(session, "user-a", limit=2)]
    assert amounts == [30, 20]


def test_concurrent_insert_of_same_key_returns_stored_transaction(session, monkeypatch):
    first = _issue(session, "quote-winner:3:coins")
    # The racing caller looked the key up before the first grant committed.
    lookups = []

    def racing_find_by_key(session, idempotency_key):
        lookups.append(idempotency_key)
        if len(lookups) == 1:
            return None
        return find_by_key(session, idempotency_key)

    monkeypatch.setattr(ledger_service, "find_by_key", racing_find_by_key)

    second = _issue(session, "quote-winner:3:coins", amount=999)

    assert second.id == first.id
    assert second.amount == 100
    assert len(session.exec(select(RewardTransaction)).all()) == 1
