"""Audit log model.

Minimal trail of milestone/task changes. Rows reference their entity by
(entity_type, entity_id) rather than a foreign key, and are removed before
the entity itself is deleted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import uuid4

from sqlmodel import JSON, Column, SQLModel
from sqlmodel import Field as SQLField

from tracker.engines.temporal import utcnow

AuditAction = Literal["CREATE", "UPDATE", "DELETE"]


class AuditLog(SQLModel, table=True):
    """One recorded change to a milestone or task."""

    __tablename__ = "audit_log"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    entity_type: str = SQLField(index=True)  # "milestone" | "task"
    entity_id: str = SQLField(index=True)
    action: str  # AuditAction
    old_values: dict | None = SQLField(default=None, sa_column=Column(JSON))
    new_values: dict | None = SQLField(default=None, sa_column=Column(JSON))
    user_id: str | None = None
    created_at: datetime = SQLField(default_factory=utcnow)
