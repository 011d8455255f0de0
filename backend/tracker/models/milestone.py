"""Milestone models.

Includes: Milestone (SQL table), MilestoneCreate / MilestoneUpdate /
BulkDeleteRequest (Pydantic requests), MilestoneRead / MilestonePage (responses).
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlmodel import SQLModel
from sqlmodel import Field as SQLField

from tracker.engines.temporal import to_utc, utcnow
from tracker.models.pagination import Pagination

PriorityLevel = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
MilestoneStatus = Literal["PENDING", "IN_PROGRESS", "COMPLETED", "BLOCKED", "OVERDUE"]

# Statuses the overdue sweep is allowed to move to OVERDUE
MILESTONE_SWEEPABLE_STATUSES = ("PENDING", "IN_PROGRESS")


class Milestone(SQLModel, table=True):
    """A dated checkpoint belonging to one transition."""

    __tablename__ = "milestone"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    title: str
    description: str | None = None
    due_date: datetime = SQLField(index=True)
    priority: str = "MEDIUM"  # PriorityLevel
    status: str = "PENDING"  # MilestoneStatus
    transition_id: str = SQLField(foreign_key="transition.id", index=True)
    created_at: datetime = SQLField(default_factory=utcnow)
    updated_at: datetime = SQLField(default_factory=utcnow)


class MilestoneCreate(BaseModel):
    """Request to create a milestone."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    due_date: datetime
    priority: PriorityLevel = "MEDIUM"

    @field_validator("due_date")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        return to_utc(v)


class MilestoneUpdate(BaseModel):
    """Request to update a milestone. All fields optional."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    due_date: datetime | None = None
    priority: PriorityLevel | None = None
    status: MilestoneStatus | None = None

    @field_validator("due_date")
    @classmethod
    def _as_utc(cls, v: datetime | None) -> datetime | None:
        return to_utc(v) if v is not None else None


class BulkDeleteRequest(BaseModel):
    """Ids of milestones to delete in one call."""

    milestone_ids: list[str]


class MilestoneRead(BaseModel):
    """Milestone as returned to callers."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None = None
    due_date: datetime
    priority: str
    status: str
    transition_id: str
    created_at: datetime
    updated_at: datetime


class MilestonePage(BaseModel):
    """One page of milestones plus pagination metadata."""

    data: list[MilestoneRead]
    pagination: Pagination
