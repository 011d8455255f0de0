"""Tests for request model validation — bounds, enums, timezone handling."""

import os
import sys
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
os.environ.setdefault("DATABASE_URL", "sqlite:///test.db")

from pydantic import ValidationError

from tracker.engines.query import MilestoneListQuery, TaskListQuery
from tracker.models.milestone import MilestoneCreate
from tracker.models.task import TaskCreate, TaskMove, TaskUpdate
from tracker.models.transition import TransitionCreate


def test_task_create_defaults():
    task = TaskCreate(title="Badge issuance", due_date=datetime(2030, 1, 1))
    assert task.priority == "MEDIUM"
    assert task.status == "NOT_STARTED"
    assert task.parent_task_id is None
    print("  PASS: task_create_defaults")


def test_task_title_bounds():
    for title in ("", "x" * 256):
        try:
            TaskCreate(title=title, due_date=datetime(2030, 1, 1))
            assert False, "Should reject title length"
        except ValidationError:
            pass
    print("  PASS: task_title_bounds")


def test_task_rejects_unknown_status():
    try:
        TaskCreate(title="t", due_date=datetime(2030, 1, 1), status="DONE")
        assert False, "Should reject status outside enum"
    except ValidationError:
        pass


def test_offset_due_date_becomes_utc():
    due = datetime(2030, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert TaskCreate(title="t", due_date=due).due_date == datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert MilestoneCreate(title="m", due_date=due).due_date == datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc)


def test_update_tracks_explicit_fields():
    patch = TaskUpdate(status="BLOCKED")
    assert patch.model_dump(exclude_unset=True) == {"status": "BLOCKED"}


def test_move_distinguishes_omitted_from_null():
    assert "parent_task_id" not in TaskMove(position=1).model_fields_set
    assert "parent_task_id" in TaskMove(parent_task_id=None).model_fields_set


def test_move_rejects_negative_position():
    try:
        TaskMove(position=-1)
        assert False, "Should reject negative position"
    except ValidationError:
        pass


def test_list_query_defaults_and_bounds():
    query = TaskListQuery()
    assert (query.page, query.limit, query.sort_by, query.sort_order) == (1, 20, "due_date", "asc")
    assert TaskListQuery(page=3, limit=10).offset == 20
    for kwargs in ({"limit": 0}, {"limit": 101}, {"page": 0}, {"upcoming": 0}, {"sort_by": "order_index"}):
        try:
            MilestoneListQuery(**kwargs)
            assert False, f"Should reject {kwargs}"
        except ValidationError:
            pass
    print("  PASS: list_query_defaults_and_bounds")


def test_transition_status_enum():
    try:
        TransitionCreate(
            contract_name="c", contract_number="n",
            start_date=datetime(2030, 1, 1), end_date=datetime(2030, 6, 1), status="On Track",
        )
        assert False, "Should reject status outside enum"
    except ValidationError:
        pass
