"""Aggregate API routers."""

from fastapi import APIRouter

from .entries import router as entries_router
from .rewards import router as rewards_router
from .system import router as system_router
from .votes import router as votes_router
from .windows import router as windows_router
from .winners import router as winners_router

ALL_ROUTERS: tuple[APIRouter, ...] = (
    system_router,
    windows_router,
    entries_router,
    votes_router,
    winners_router,
    rewards_router,
)

__all__ = ["ALL_ROUTERS"]
