"""Typed list queries — filter / sort / pagination for milestones and tasks.

The list endpoints accept one ListQuery struct; build_conditions() and
apply_order() translate it into a SQLModel select:

  status    → enum equality
  priority  → enum equality
  overdue   → due_date < now AND status != COMPLETED
  upcoming  → now <= due_date <= now + N days AND status != COMPLETED

overdue/upcoming replace an explicit status filter, and upcoming's date range
wins over overdue's when both are set.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any, Literal, Sequence

from pydantic import BaseModel, Field
from sqlalchemy import case, func
from sqlmodel import Session, select

from tracker.config import SortOrder, settings
from tracker.engines.temporal import to_utc, utcnow
from tracker.models.milestone import MilestoneStatus, PriorityLevel
from tracker.models.pagination import Pagination
from tracker.models.task import TaskStatus

SortField = Literal["title", "due_date", "priority", "status", "created_at"]

# Enum declaration order, used so priority/status sort by meaning, not spelling
_PRIORITY_RANK = {"LOW": 0, "MEDIUM": 1, "HIGH": 2, "CRITICAL": 3}
_STATUS_RANK = {
    "NOT_STARTED": 0, "PENDING": 0, "ASSIGNED": 1, "IN_PROGRESS": 2,
    "ON_HOLD": 3, "BLOCKED": 4, "UNDER_REVIEW": 5, "COMPLETED": 6,
    "CANCELLED": 7, "OVERDUE": 8,
}


class ListQuery(BaseModel):
    """Filter, sort and pagination parameters shared by list endpoints."""

    status: str | None = None
    priority: PriorityLevel | None = None
    overdue: bool | None = None
    upcoming: int | None = Field(default=None, ge=1)  # days ahead
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=settings.default_page_limit, ge=1, le=settings.max_page_limit)
    sort_by: SortField = "due_date"
    sort_order: SortOrder = "asc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class TaskListQuery(ListQuery):
    status: TaskStatus | None = None


class MilestoneListQuery(ListQuery):
    status: MilestoneStatus | None = None


def build_conditions(model: Any, transition_id: str, query: ListQuery, now: datetime | None = None) -> list:
    """Translate a ListQuery into where-clauses for `model`."""
    now = to_utc(now) if now else utcnow()
    conditions = [model.transition_id == transition_id]

    if query.priority:
        conditions.append(model.priority == query.priority)

    date_range: list = []
    status_clause = model.status == query.status if query.status else None

    if query.overdue:
        date_range = [model.due_date < now]
        status_clause = model.status != "COMPLETED"

    if query.upcoming:
        horizon = now + timedelta(days=query.upcoming)
        date_range = [model.due_date >= now, model.due_date <= horizon]
        status_clause = model.status != "COMPLETED"

    if status_clause is not None:
        conditions.append(status_clause)
    conditions.extend(date_range)
    return conditions


def apply_order(statement, model: Any, query: ListQuery):
    """Order by the requested field, with created_at/id as tie-breakers."""
    if query.sort_by == "priority":
        column = case(_PRIORITY_RANK, value=model.priority, else_=len(_PRIORITY_RANK))
    elif query.sort_by == "status":
        column = case(_STATUS_RANK, value=model.status, else_=len(_STATUS_RANK))
    else:
        column = getattr(model, query.sort_by)

    primary = column.desc() if query.sort_order == "desc" else column.asc()
    return statement.order_by(primary, model.created_at.asc(), model.id.asc())


def run_list_query(
    session: Session,
    model: Any,
    transition_id: str,
    query: ListQuery,
    now: datetime | None = None,
) -> tuple[Sequence[Any], Pagination]:
    """Execute a filtered, sorted, paginated list query plus its count."""
    conditions = build_conditions(model, transition_id, query, now=now)

    statement = apply_order(select(model).where(*conditions), model, query)
    rows = session.exec(statement.offset(query.offset).limit(query.limit)).all()

    total = session.exec(select(func.count()).select_from(model).where(*conditions)).one()

    return rows, Pagination(
        page=query.page,
        limit=query.limit,
        total=total,
        total_pages=math.ceil(total / query.limit),
    )
