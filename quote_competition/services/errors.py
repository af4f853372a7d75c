"""Domain errors raised by the competition services.

Routers turn these into ``HTTPException`` responses. The ``code`` is stable
and meant for clients to switch on; the message is for humans.
"""

from __future__ import annotations


class CompetitionError(Exception):
    """Base class for every expected competition failure."""

    status_code = 400

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


class ValidationError(CompetitionError):
    """Bad submission input. Never retried automatically."""

    EMPTY = "EMPTY"
    TOO_LONG = "TOO_LONG"
    WINDOW_INACTIVE = "WINDOW_INACTIVE"
    DUPLICATE = "DUPLICATE"

    def __init__(self, code: str, message: str) -> None:
        super().__init__(code, message)
        if code == self.DUPLICATE:
            self.status_code = 409


class ConstraintError(CompetitionError):
    """A competition rule rejected the request in its current state."""

    status_code = 409

    ALREADY_VOTED = "ALREADY_VOTED"
    WINDOW_CLOSED = "WINDOW_CLOSED"
    SELF_VOTE = "SELF_VOTE"
    WINDOW_NOT_ACTIVE = "WINDOW_NOT_ACTIVE"
    ACTIVE_WINDOW_CONFLICT = "ACTIVE_WINDOW_CONFLICT"


class NotFoundError(CompetitionError):
    status_code = 404

    ENTRY_NOT_FOUND = "ENTRY_NOT_FOUND"
    WINDOW_NOT_FOUND = "WINDOW_NOT_FOUND"
    NO_ELIGIBLE_WINDOW = "NO_ELIGIBLE_WINDOW"


class AuthorizationError(CompetitionError):
    status_code = 401

    UNAUTHORIZED = "UNAUTHORIZED"

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(self.UNAUTHORIZED, message)


__all__ = [
    "AuthorizationError",
    "CompetitionError",
    "ConstraintError",
    "NotFoundError",
    "ValidationError",
]
