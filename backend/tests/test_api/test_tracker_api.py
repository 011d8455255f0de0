"""Tests for the transition, task, milestone and maintenance endpoints."""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from tracker.db.database import create_db_and_tables, get_session
from tracker.engines.temporal import utcnow
from tracker.main import app
from tracker.models.task import Task

# In-memory SQLite DB for tests. StaticPool keeps the same connection so
# create_all and test sessions share the same in-memory database.
_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
create_db_and_tables(_engine)


def override_get_session():
    with Session(_engine) as session:
        yield session


@pytest.fixture(autouse=True)
def clean_db():
    """Wipe tables before each test."""
    with Session(_engine) as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            session.exec(table.delete())  # type: ignore[call-overload]
        session.commit()
    app.dependency_overrides[get_session] = override_get_session
    yield
    app.dependency_overrides.pop(get_session, None)


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def _iso(days: int) -> str:
    return (utcnow() + timedelta(days=days)).replace(microsecond=0).isoformat()


@pytest.fixture
def transition_id(client) -> str:
    resp = client.post("/api/v1/transitions", json={
        "contract_name": "Base Operations Support",
        "contract_number": "W91-24-C-0001",
        "start_date": _iso(-30),
        "end_date": _iso(180),
    })
    assert resp.status_code == 201
    return resp.json()["id"]


def _task(client, tid: str, title: str, days: int = 10, **extra) -> dict:
    resp = client.post(f"/api/v1/transitions/{tid}/tasks", json={"title": title, "due_date": _iso(days), **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _root_titles(client, tid: str) -> list[str]:
    tree = client.get(f"/api/v1/transitions/{tid}/tasks/tree").json()["data"]
    return [node["title"] for node in tree]


# === Transitions ===


class TestTransitions:
    def test_create_and_get(self, client, transition_id):
        resp = client.get(f"/api/v1/transitions/{transition_id}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["contract_number"] == "W91-24-C-0001"
        assert data["status"] == "NOT_STARTED"

    def test_end_before_start(self, client):
        resp = client.post("/api/v1/transitions", json={
            "contract_name": "X", "contract_number": "X-1",
            "start_date": _iso(10), "end_date": _iso(5),
        })
        assert resp.status_code == 400
        assert resp.json()["detail"] == "End date must be after start date"

    def test_list(self, client, transition_id):
        data = client.get("/api/v1/transitions").json()
        assert data["pagination"]["total"] == 1
        assert data["data"][0]["id"] == transition_id

    def test_update_status(self, client, transition_id):
        resp = client.patch(f"/api/v1/transitions/{transition_id}/status", json={"status": "AT_RISK"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "AT_RISK"

    def test_missing(self, client):
        resp = client.get("/api/v1/transitions/missing")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Transition not found"}


# === Tasks ===


class TestTasks:
    def test_create_and_get(self, client, transition_id):
        task = _task(client, transition_id, "Inventory government property")
        assert task["order_index"] == 0
        resp = client.get(f"/api/v1/transitions/{transition_id}/tasks/{task['id']}")
        assert resp.status_code == 200
        assert resp.json()["title"] == "Inventory government property"

    def test_create_past_due_date(self, client, transition_id):
        resp = client.post(
            f"/api/v1/transitions/{transition_id}/tasks",
            json={"title": "Late", "due_date": _iso(-2)},
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Due date cannot be in the past"

    def test_create_unknown_transition(self, client):
        resp = client.post("/api/v1/transitions/missing/tasks", json={"title": "X", "due_date": _iso(1)})
        assert resp.status_code == 404

    def test_schema_violation_is_422(self, client, transition_id):
        resp = client.post(f"/api/v1/transitions/{transition_id}/tasks", json={"title": "", "due_date": _iso(1)})
        assert resp.status_code == 422

    def test_list_with_query(self, client, transition_id):
        for i in range(3):
            _task(client, transition_id, f"T{i}", days=i + 1)
        resp = client.get(
            f"/api/v1/transitions/{transition_id}/tasks",
            params={"limit": 2, "sort_by": "due_date", "sort_order": "desc"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert [t["title"] for t in data["data"]] == ["T2", "T1"]
        assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

    def test_list_limit_bounds(self, client, transition_id):
        resp = client.get(f"/api/v1/transitions/{transition_id}/tasks", params={"limit": 101})
        assert resp.status_code == 422

    def test_tree(self, client, transition_id):
        a = _task(client, transition_id, "A")
        _task(client, transition_id, "B")
        _task(client, transition_id, "A1", parent_task_id=a["id"])
        tree = client.get(f"/api/v1/transitions/{transition_id}/tasks/tree").json()["data"]
        assert [(n["title"], n["sequence"]) for n in tree] == [("A", "1"), ("B", "2")]
        assert tree[0]["children"][0]["sequence"] == "1.1"

    def test_update(self, client, transition_id):
        task = _task(client, transition_id, "Draft")
        resp = client.put(
            f"/api/v1/transitions/{transition_id}/tasks/{task['id']}",
            json={"status": "IN_PROGRESS"},
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "IN_PROGRESS"

    def test_update_in_other_transition_is_404(self, client, transition_id):
        task = _task(client, transition_id, "Draft")
        resp = client.put(f"/api/v1/transitions/other/tasks/{task['id']}", json={"status": "IN_PROGRESS"})
        assert resp.status_code == 404

    def test_delete_compacts(self, client, transition_id):
        ids = [_task(client, transition_id, name)["id"] for name in ("A", "B", "C")]
        resp = client.delete(f"/api/v1/transitions/{transition_id}/tasks/{ids[0]}")
        assert resp.json() == {"message": "Task deleted"}
        with Session(_engine) as session:
            remaining = sorted((t.order_index, t.title) for t in session.exec(select(Task)))
        assert remaining == [(0, "B"), (1, "C")]

    def test_move_after(self, client, transition_id):
        ids = {name: _task(client, transition_id, name)["id"] for name in ("T0", "T1", "T2", "T3")}
        resp = client.patch(
            f"/api/v1/transitions/{transition_id}/tasks/{ids['T0']}/move",
            json={"after_task_id": ids["T2"]},
        )
        assert resp.status_code == 200
        assert resp.json()["order_index"] == 2
        assert _root_titles(client, transition_id) == ["T1", "T2", "T0", "T3"]

    def test_move_explicit_null_parent(self, client, transition_id):
        parent = _task(client, transition_id, "P")
        child = _task(client, transition_id, "C", parent_task_id=parent["id"])
        resp = client.patch(
            f"/api/v1/transitions/{transition_id}/tasks/{child['id']}/move",
            json={"parent_task_id": None, "position": 0},
        )
        assert resp.status_code == 200
        assert resp.json()["parent_task_id"] is None
        assert _root_titles(client, transition_id) == ["C", "P"]

    def test_move_cross_transition_parent(self, client, transition_id):
        other = client.post("/api/v1/transitions", json={
            "contract_name": "Other", "contract_number": "O-1",
            "start_date": _iso(-1), "end_date": _iso(90),
        }).json()["id"]
        foreign = _task(client, other, "Foreign")
        task = _task(client, transition_id, "Mine")
        resp = client.patch(
            f"/api/v1/transitions/{transition_id}/tasks/{task['id']}/move",
            json={"parent_task_id": foreign["id"]},
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Parent task must belong to the same transition"


# === Milestones ===


class TestMilestones:
    def _create(self, client, tid, title="Phase-in complete", days=20):
        resp = client.post(f"/api/v1/transitions/{tid}/milestones", json={"title": title, "due_date": _iso(days)})
        assert resp.status_code == 201, resp.text
        return resp.json()

    def test_crud(self, client, transition_id):
        milestone = self._create(client, transition_id)
        base = f"/api/v1/transitions/{transition_id}/milestones/{milestone['id']}"

        assert client.get(base).json()["status"] == "PENDING"
        resp = client.put(base, json={"priority": "CRITICAL"})
        assert resp.json()["priority"] == "CRITICAL"
        resp = client.delete(base)
        assert resp.json() == {"message": "Milestone deleted successfully"}
        assert client.get(base).status_code == 404

    def test_out_of_window(self, client, transition_id):
        resp = client.post(
            f"/api/v1/transitions/{transition_id}/milestones",
            json={"title": "Too late", "due_date": _iso(400)},
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Milestone due date must be within transition timeframe"

    def test_list_upcoming(self, client, transition_id):
        self._create(client, transition_id, "Near", days=3)
        self._create(client, transition_id, "Far", days=60)
        resp = client.get(f"/api/v1/transitions/{transition_id}/milestones", params={"upcoming": 7})
        assert [m["title"] for m in resp.json()["data"]] == ["Near"]

    def test_bulk_delete(self, client, transition_id):
        ids = [self._create(client, transition_id, f"M{i}")["id"] for i in range(3)]
        resp = client.post(
            f"/api/v1/transitions/{transition_id}/milestones/bulk-delete",
            json={"milestone_ids": ids},
        )
        assert resp.status_code == 200
        assert resp.json() == {"message": "3 milestones deleted successfully"}

    def test_bulk_delete_missing(self, client, transition_id):
        resp = client.post(
            f"/api/v1/transitions/{transition_id}/milestones/bulk-delete",
            json={"milestone_ids": ["nope"]},
        )
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Some milestones not found"


# === Maintenance ===


def test_overdue_sweep_endpoint(client, transition_id):
    task = _task(client, transition_id, "Soon", days=1)
    with Session(_engine) as session:
        row = session.get(Task, task["id"])
        row.due_date = utcnow() - timedelta(days=1)
        session.add(row)
        session.commit()

    resp = client.post("/api/v1/maintenance/overdue-sweep")
    assert resp.status_code == 200
    data = resp.json()
    assert data["tasks_updated"] == 1
    assert data["milestones_updated"] == 0
    assert client.get(f"/api/v1/transitions/{transition_id}/tasks/{task['id']}").json()["status"] == "OVERDUE"
