"""Transition models.

Includes: Transition (SQL table), TransitionCreate / TransitionStatusUpdate
(Pydantic requests), TransitionRead / TransitionPage (responses).

A transition is the bounded project window that owns milestones and tasks.
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

TransitionStatus = Literal["NOT_STARTED", "ON_TRACK", "AT_RISK", "BLOCKED", "COMPLETED"]


class Transition(SQLModel, table=True):
    """A contract transition with a start/end window."""

    __tablename__ = "transition"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    contract_name: str
    contract_number: str = SQLField(index=True)
    description: str | None = None
    start_date: datetime
    end_date: datetime
    status: str = "NOT_STARTED"  # TransitionStatus
    created_at: datetime = SQLField(default_factory=utcnow)
    updated_at: datetime = SQLField(default_factory=utcnow)


class TransitionCreate(BaseModel):
    """Request to create a transition."""

    contract_name: str = Field(min_length=1, max_length=255)
    contract_number: str = Field(min_length=1, max_length=100)
    description: str | None = None
    start_date: datetime
    end_date: datetime
    status: TransitionStatus = "NOT_STARTED"

    @field_validator("start_date", "end_date")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        return to_utc(v)


class TransitionStatusUpdate(BaseModel):
    """Request to change a transition's status."""

    status: TransitionStatus


class TransitionRead(BaseModel):
    """Transition as returned to callers."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    contract_name: str
    contract_number: str
    description: str | None = None
    start_date: datetime
    end_date: datetime
    status: str
    created_at: datetime
    updated_at: datetime


class TransitionPage(BaseModel):
    data: list[TransitionRead]
    pagination: Pagination
