"""Database configuration and session helpers."""

from __future__ import annotations

from typing import Iterator

from sqlmodel import Session, create_engine

from .config import DATA_DIR, DATABASE_URL


def _build_engine(url: str):
    if url.startswith("sqlite"):
        if url.startswith("sqlite:///") and ":memory:" not in url:
            DATA_DIR.mkdir(parents=True, exist_ok=True)
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


engine = _build_engine(DATABASE_URL)


def get_session() -> Iterator[Session]:
    """FastAPI dependency that yields a database session."""

    with Session(engine) as session:
        yield session


__all__ = ["engine", "get_session"]
