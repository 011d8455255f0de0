"""Task models.

Includes: Task (SQL table), TaskCreate / TaskUpdate / TaskMove (Pydantic
requests), TaskRead / TaskTreeNode (Pydantic responses).

Tasks form a forest per transition through the self-referencing
parent_task_id. order_index is the zero-based position of a task among the
siblings sharing (transition_id, parent_task_id).
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlmodel import SQLModel
from sqlmodel import Field as SQLField

from tracker.engines.temporal import to_utc, utcnow
from tracker.models.milestone import PriorityLevel
from tracker.models.pagination import Pagination

TaskStatus = Literal[
    "NOT_STARTED", "ASSIGNED", "IN_PROGRESS", "ON_HOLD", "BLOCKED",
    "UNDER_REVIEW", "COMPLETED", "CANCELLED", "OVERDUE",
]

# Statuses the overdue sweep is allowed to move to OVERDUE
TASK_SWEEPABLE_STATUSES = ("NOT_STARTED", "ASSIGNED", "IN_PROGRESS")


class Task(SQLModel, table=True):
    """A unit of work inside a transition, optionally nested under another task."""

    __tablename__ = "task"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    title: str
    description: str | None = None
    due_date: datetime = SQLField(index=True)
    priority: str = "MEDIUM"  # PriorityLevel
    status: str = "NOT_STARTED"  # TaskStatus
    transition_id: str = SQLField(foreign_key="transition.id", index=True)
    milestone_id: str | None = SQLField(default=None, foreign_key="milestone.id")
    parent_task_id: str | None = SQLField(default=None, foreign_key="task.id", index=True)
    order_index: int = 0
    created_at: datetime = SQLField(default_factory=utcnow)
    updated_at: datetime = SQLField(default_factory=utcnow)


# === Requests ===


class TaskCreate(BaseModel):
    """Request to create a task."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    due_date: datetime
    priority: PriorityLevel = "MEDIUM"
    status: TaskStatus = "NOT_STARTED"
    milestone_id: str | None = None
    parent_task_id: str | None = None

    @field_validator("due_date")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        return to_utc(v)


class TaskUpdate(BaseModel):
    """Request to update a task. All fields optional.

    A null milestone_id / parent_task_id leaves the stored reference as is.
    A new parent_task_id appends the task to that parent's children; use the
    move endpoint to choose the position or to move a task back to the root.
    """

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    due_date: datetime | None = None
    priority: PriorityLevel | None = None
    status: TaskStatus | None = None
    milestone_id: str | None = None
    parent_task_id: str | None = None

    @field_validator("due_date")
    @classmethod
    def _as_utc(cls, v: datetime | None) -> datetime | None:
        return to_utc(v) if v is not None else None


class TaskMove(BaseModel):
    """Target descriptor for repositioning a task.

    parent_task_id / milestone_id: omitted keeps the current value, an
    explicit null clears it. Placement precedence is before_task_id, then
    after_task_id, then position; with none given the task goes last.
    """

    parent_task_id: str | None = None
    milestone_id: str | None = None
    before_task_id: str | None = None
    after_task_id: str | None = None
    position: int | None = Field(default=None, ge=0)


# === Responses ===


class TaskRead(BaseModel):
    """Task as returned to callers."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None = None
    due_date: datetime
    priority: str
    status: str
    transition_id: str
    milestone_id: str | None = None
    parent_task_id: str | None = None
    order_index: int
    created_at: datetime
    updated_at: datetime


class TaskTreeNode(TaskRead):
    """A task with its dotted display sequence and nested children."""

    sequence: str = ""
    children: list[TaskTreeNode] = Field(default_factory=list)


TaskTreeNode.model_rebuild()


class TaskPage(BaseModel):
    """One page of tasks plus pagination metadata."""

    data: list[TaskRead]
    pagination: Pagination
