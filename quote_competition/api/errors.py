"""Translation of domain errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException

from ..services.errors import AuthorizationError, CompetitionError


def http_error(exc: CompetitionError) -> HTTPException:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthorizationError) else None
    return HTTPException(
        status_code=exc.status_code,
        detail={"code": exc.code, "message": exc.message},
        headers=headers,
    )


def bad_request(message: str) -> HTTPException:
    return HTTPException(400, {"code": "BAD_REQUEST", "message": message})


__all__ = ["bad_request", "http_error"]
