"""Service layer helpers."""

from .entries import entry_to_dict, submit_entry
from .errors import (
    AuthorizationError,
    CompetitionError,
    ConstraintError,
    NotFoundError,
    ValidationError,
)
from .ledger import issue_reward
from .scheduler import (
    CloseResult,
    activate_window,
    close_and_rotate,
    get_active_window,
    window_to_dict,
)
from .voting import VoteResult, vote
from .winners import select_winner, tally, winner_summary

__all__ = [
    "AuthorizationError",
    "CloseResult",
    "CompetitionError",
    "ConstraintError",
    "NotFoundError",
    "ValidationError",
    "VoteResult",
    "activate_window",
    "close_and_rotate",
    "entry_to_dict",
    "get_active_window",
    "issue_reward",
    "select_winner",
    "submit_entry",
    "tally",
    "vote",
    "window_to_dict",
]
