"""Tests for tallying, winner selection and winner payout."""

from datetime import date, timedelta, timezone

import pytest
from conftest import at
from sqlmodel import select

from quote_competition.core import WINNER_COIN_REWARD, WINNER_XP_REWARD
from quote_competition.core.time import ensure_utc
from quote_competition.models import Entry, RewardTransaction, Vote, Winner
from quote_competition.services import winners as winners_service
from quote_competition.services.entries import submit_entry
from quote_competition.services.errors import NotFoundError
from quote_competition.services.ledger import winner_reward_key
from quote_competition.services.scheduler import activate_window, create_window
from quote_competition.services.winners import (
    get_winner,
    latest_winner,
    list_winners,
    rank_entries,
    select_winner,
    tally,
    winner_summary,
)


def _cast(session, window, entry, count, start_voter=0):
    """Insert ``count`` votes from distinct voters straight into storage."""
    for index in range(count):
        session.add(
            Vote(
                entry_id=entry.id,
                window_id=window.id,
                voter_id=f"voter-{start_voter + index}",
                cast_at=at(2, 9),
                cast_on=date(2025, 1, 2),
            )
        )
    session.commit()


@pytest.fixture
def contest(session, courage_week):
    courage, _ = courage_week
    a = submit_entry(session, "user-a", courage.id, "Courage is knowing what not to fear.", at(1, 10))
    b = submit_entry(session, "user-b", courage.id, "Fortune favours the bold.", at(1, 11))
    return courage, a, b


def test_tally_includes_zero_vote_entries(session, contest):
    courage, a, b = contest
    _cast(session, courage, a, 2)

    assert tally(session, courage.id) == {a.id: 2, b.id: 0}


def test_tally_of_empty_window(session, courage_week):
    courage, _ = courage_week

    assert tally(session, courage.id) == {}


def test_most_votes_wins_and_is_paid(session, contest):
    courage, a, b = contest
    _cast(session, courage, a, 5)
    _cast(session, courage, b, 3, start_voter=100)

    winner = select_winner(session, courage.id, at(8, 0))

    assert winner.entry_id == a.id
    assert winner.author_id == "user-a"
    assert winner.votes_count == 5
    assert winner.coins_awarded == WINNER_COIN_REWARD
    assert winner.xp_awarded == WINNER_XP_REWARD

    transactions = session.exec(select(RewardTransaction)).all()
    assert {(t.recipient_id, t.unit, t.amount) for t in transactions} == {
        ("user-a", "coins", WINNER_COIN_REWARD),
        ("user-a", "xp", WINNER_XP_REWARD),
    }
    assert winner.coin_transaction_id is not None
    assert winner.xp_transaction_id is not None
    keys = {t.idempotency_key for t in transactions}
    assert keys == {winner_reward_key(winner.id, "coins"), winner_reward_key(winner.id, "xp")}


def test_selection_is_idempotent(session, contest):
    courage, a, b = contest
    _cast(session, courage, a, 2)

    first = select_winner(session, courage.id, at(8, 0))
    _cast(session, courage, b, 9, start_voter=100)
    second = select_winner(session, courage.id, at(8, 5))

    assert second.id == first.id
    assert second.entry_id == a.id
    assert second.votes_count == 2
    assert len(session.exec(select(Winner)).all()) == 1
    assert len(session.exec(select(RewardTransaction)).all()) == 2


def test_no_votes_means_no_winner(session, contest):
    courage, _, _ = contest

    assert select_winner(session, courage.id, at(8, 0)) is None
    assert session.exec(select(Winner)).all() == []
    assert session.exec(select(RewardTransaction)).all() == []


def test_no_entries_means_no_winner(session, courage_week):
    courage, _ = courage_week

    assert select_winner(session, courage.id, at(8, 0)) is None


def test_tie_goes_to_earliest_submission(session, contest):
    courage, a, b = contest
    _cast(session, courage, b, 3)
    _cast(session, courage, a, 3, start_voter=100)

    winner = select_winner(session, courage.id, at(8, 0))

    assert winner.entry_id == a.id


def test_rank_breaks_identical_timestamps_by_author():
    counts = {1: 4, 2: 4, 3: 1}
    entries = [
        Entry(id=1, window_id=1, author_id="zed", text="z", created_at=at(1, 10)),
        Entry(id=2, window_id=1, author_id="amy", text="a", created_at=at(1, 10)),
        Entry(id=3, window_id=1, author_id="bob", text="b", created_at=at(1, 9)),
    ]

    assert [e.id for e in rank_entries(entries, counts)] == [2, 1, 3]


def test_window_reward_overrides(session):
    window = create_window(
        session, theme="Curiosity", start_at=at(1, 0), end_at=at(8, 0), coin_reward=40, xp_reward=0
    )
    activate_window(session, window.id, at(1, 0))
    entry = submit_entry(session, "user-a", window.id, "Stay curious.", at(1, 10))
    _cast(session, window, entry, 1)

    winner = select_winner(session, window.id, at(8, 0))

    assert winner.coins_awarded == 40
    assert winner.xp_awarded == 0
    assert winner.xp_transaction_id is None
    transactions = session.exec(select(RewardTransaction)).all()
    assert [(t.unit, t.amount) for t in transactions] == [("coins", 40)]


def test_missing_reward_is_repaired_without_duplicates(session, contest):
    courage, a, _ = contest
    _cast(session, courage, a, 1)
    winner = select_winner(session, courage.id, at(8, 0))

    xp = session.get(RewardTransaction, winner.xp_transaction_id)
    winner.xp_transaction_id = None
    session.add(winner)
    session.delete(xp)
    session.commit()

    repaired = select_winner(session, courage.id, at(8, 1))
    select_winner(session, courage.id, at(8, 2))

    assert repaired.xp_transaction_id is not None
    units = sorted(t.unit for t in session.exec(select(RewardTransaction)).all())
    assert units == ["coins", "xp"]


def test_unknown_window(session):
    with pytest.raises(NotFoundError):
        select_winner(session, 404, at(8, 0))


def test_summary_and_hall_of_fame(session, contest):
    courage, a, _ = contest
    _cast(session, courage, a, 1)
    winner = select_winner(session, courage.id, at(8, 0))

    summary = winner_summary(session, winner)

    assert summary["quote"] == "Courage is knowing what not to fear."
    assert summary["theme"] == "Courage"
    assert summary["author_id"] == "user-a"
    assert summary["votes"] == 1
    assert latest_winner(session).id == winner.id
    assert [w.id for w in list_winners(session)] == [winner.id]
    assert list_winners(session, offset=1) == []


def test_losing_a_concurrent_selection_returns_stored_winner(session, contest, monkeypatch):
    courage, a, b = contest
    _cast(session, courage, a, 2)
    stored = select_winner(session, courage.id, at(8, 0))
    _cast(session, courage, b, 5, start_voter=100)

    # The racing caller looked before the stored winner was committed.
    lookups = []

    def racing_get_winner(session, window_id):
        lookups.append(window_id)
        if len(lookups) == 1:
            return None
        return get_winner(session, window_id)

    monkeypatch.setattr(winners_service, "get_winner", racing_get_winner)

    result = select_winner(session, courage.id, at(8, 1))

    assert result.id == stored.id
    assert result.entry_id == a.id
    assert len(session.exec(select(Winner)).all()) == 1
    assert len(session.exec(select(RewardTransaction)).all()) == 2


def test_announced_at_is_stored_in_utc(session, contest):
    courage, a, _ = contest
    _cast(session, courage, a, 1)

    winner = select_winner(session, courage.id, at(8, 0).astimezone(timezone(timedelta(hours=9))))

    assert ensure_utc(winner.announced_at) == at(8, 0)
