"""Audit trail helpers.

Rows are added to the caller's session and committed with the caller's unit
of work, so an audit entry never outlives a rolled-back change.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import delete
from sqlmodel import Session, SQLModel

from tracker.models.audit import AuditLog


def snapshot(record: SQLModel | None) -> dict | None:
    """JSON-safe copy of a row's current values."""
    if record is None:
        return None
    return record.model_dump(mode="json")


def record_audit(
    session: Session,
    entity_type: str,
    entity_id: str,
    action: str,
    old_values: dict | None = None,
    new_values: dict | None = None,
    user_id: str | None = None,
) -> AuditLog:
    """Stage an audit row in the session (no commit)."""
    entry = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        old_values=old_values,
        new_values=new_values,
        user_id=user_id,
    )
    session.add(entry)
    return entry


def purge_audit(session: Session, entity_type: str, entity_ids: Iterable[str]) -> None:
    """Delete audit rows for the given entities (no commit)."""
    ids = list(entity_ids)
    if not ids:
        return
    session.exec(  # type: ignore[call-overload]
        delete(AuditLog)
        .where(AuditLog.entity_type == entity_type)
        .where(AuditLog.entity_id.in_(ids))  # type: ignore[attr-defined]
    )
