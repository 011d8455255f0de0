"""Shared test fixtures for Transition Tracker backend tests."""

import os
import sys
from datetime import timedelta

import pytest

# Ensure backend is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("DATABASE_URL", "sqlite:///test.db")
os.environ.setdefault("OVERDUE_SWEEP_ENABLED", "false")

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from tracker.db.database import create_db_and_tables
from tracker.engines.temporal import utcnow
from tracker.models.transition import Transition


def make_engine():
    """In-memory SQLite engine with all tracker tables.

    StaticPool keeps the same connection so create_all and test sessions
    share the same in-memory database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    return engine


def add_transition(session: Session, days_before: int = 30, days_after: int = 180, **overrides) -> Transition:
    """Persist a transition whose window spans today by default."""
    now = utcnow()
    values = {
        "contract_name": "Base Operations Support",
        "contract_number": "W91-24-C-0001",
        "start_date": now - timedelta(days=days_before),
        "end_date": now + timedelta(days=days_after),
    }
    values.update(overrides)
    transition = Transition(**values)
    session.add(transition)
    session.commit()
    session.refresh(transition)
    return transition


@pytest.fixture
def db_engine():
    return make_engine()


@pytest.fixture
def session(db_engine):
    with Session(db_engine) as session:
        yield session


@pytest.fixture
def transition(session):
    return add_transition(session)


@pytest.fixture
def make_transition(session):
    """Factory for extra transitions in the shared session."""
    def _make(**kwargs) -> Transition:
        return add_transition(session, **kwargs)
    return _make
