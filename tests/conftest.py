"""Shared fixtures: in-memory database, controllable clock, API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from quote_competition import core
from quote_competition.app import app
from quote_competition.core import get_now, get_session
from quote_competition.services.scheduler import activate_window, create_window

CRON_SECRET = "test-cron-secret"


def at(day, hour=12, minute=0):
    """A UTC moment in January 2025."""
    return datetime(2025, 1, day, hour, minute, tzinfo=timezone.utc)


class Clock:
    def __init__(self, moment):
        self.moment = moment

    def __call__(self):
        return self.moment

    def set(self, moment):
        self.moment = moment


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def clock():
    return Clock(at(1, 9))


@pytest.fixture
def client(session, clock, monkeypatch):
    monkeypatch.setattr(core, "CRON_SECRET", CRON_SECRET)

    def _session_override():
        yield session

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_now] = clock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {CRON_SECRET}"}


@pytest.fixture
def courage_week(session):
    """Active Courage window (Jan 1-7) linked to a scheduled Kindness week."""
    kindness = create_window(
        session, theme="Kindness", start_at=at(8, 0), end_at=at(15, 0)
    )
    courage = create_window(
        session,
        theme="Courage",
        description="Words that help you face what scares you",
        start_at=at(1, 0),
        end_at=at(8, 0),
        next_window_id=kindness.id,
    )
    activate_window(session, courage.id, at(1, 0))
    return courage, kindness
