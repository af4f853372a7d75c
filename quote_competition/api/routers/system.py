"""System-level API endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ...core import MAX_ENTRY_LENGTH, WINNER_COIN_REWARD, WINNER_XP_REWARD

router = APIRouter(tags=["system"])


@router.get("/health")
def health() -> Dict[str, bool]:
    """Simple readiness probe."""

    return {"ok": True}


@router.get("/healthz")
def healthz() -> JSONResponse:
    """Kubernetes-style readiness endpoint."""

    return JSONResponse({"ok": True})


@router.get("/config")
def get_config() -> Dict[str, Any]:
    """Expose competition rules the client renders."""

    return {
        "max_entry_length": MAX_ENTRY_LENGTH,
        "winner_coin_reward": WINNER_COIN_REWARD,
        "winner_xp_reward": WINNER_XP_REWARD,
    }


__all__ = ["router"]
