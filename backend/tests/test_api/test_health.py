"""Tests for the health and root endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from tracker.api.health import VERSION, set_scheduler
from tracker.db.database import get_session
from tracker.main import app

_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    with Session(_engine) as session:
        yield session


@pytest.fixture
def client():
    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.pop(get_session, None)
    set_scheduler(None)


def test_root(client):
    resp = client.get("/")
    assert resp.json() == {"name": "Transition Tracker", "version": VERSION, "status": "running"}


def test_health_reports_database(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["version"] == VERSION
    assert data["checks"]["database"]["status"] == "ok"
    assert data["dependencies"]["database"] == "ok"


def test_health_scheduler_disabled_is_healthy(client, monkeypatch):
    from tracker.config import settings

    monkeypatch.setattr(settings, "overdue_sweep_enabled", False)
    data = client.get("/health").json()
    assert data["checks"]["overdue_scheduler"]["status"] == "disabled"
    assert data["status"] == "healthy"


def test_health_scheduler_not_running_is_degraded(client, monkeypatch):
    from tracker.config import settings

    monkeypatch.setattr(settings, "overdue_sweep_enabled", True)
    set_scheduler(None)
    data = client.get("/health").json()
    assert data["checks"]["overdue_scheduler"]["status"] == "warning"
    assert data["status"] == "degraded"
