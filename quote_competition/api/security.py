"""Shared-secret guard for the close/rotate trigger and admin actions."""

from __future__ import annotations

import logging
import secrets
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .. import core
from ..services.errors import AuthorizationError
from .errors import http_error

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def require_trigger_secret(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> bool:
    """Accept only ``Authorization: Bearer <CRON_SECRET>``."""

    expected = core.CRON_SECRET
    client = request.client.host if request.client else "unknown"
    if not expected:
        logger.error("Rejected %s %s from %s: CRON_SECRET is not configured", request.method, request.url.path, client)
        raise http_error(AuthorizationError("Trigger credentials are not configured"))
    if credentials is None or credentials.scheme.lower() != "bearer":
        logger.warning("Rejected %s %s from %s: missing bearer token", request.method, request.url.path, client)
        raise http_error(AuthorizationError("Unauthorized"))
    if not secrets.compare_digest(credentials.credentials, expected):
        logger.warning("Rejected %s %s from %s: invalid token", request.method, request.url.path, client)
        raise http_error(AuthorizationError("Invalid token"))
    return True


__all__ = ["require_trigger_secret"]
