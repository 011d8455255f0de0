"""Temporal validation shared by milestones and tasks.

A due date must fall inside its transition's [start_date, end_date] window and
must not be earlier than the start of the current UTC day. Everything here
works on aware UTC datetimes; naive values (what SQLite hands back through
older column types) are read as UTC.
"""

from __future__ import annotations

from datetime import datetime, time, timezone
from typing import TYPE_CHECKING

from sqlmodel import Session

from tracker.engines.errors import NotFoundError, ValidationError

if TYPE_CHECKING:
    from tracker.models.transition import Transition


def to_utc(value: datetime) -> datetime:
    """Return `value` as an aware UTC datetime; naive values are taken as UTC.

    SQLite has no offset storage, so rows read back may be naive depending on
    the column type in use. Every comparison goes through here first.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    """Current time as aware UTC."""
    return datetime.now(timezone.utc)


def start_of_today(now: datetime | None = None) -> datetime:
    """Midnight of the current UTC day."""
    now = to_utc(now) if now else utcnow()
    return datetime.combine(now.date(), time.min, tzinfo=timezone.utc)


def get_transition_or_raise(session: Session, transition_id: str) -> Transition:
    """Resolve a transition by id or raise NotFoundError."""
    from tracker.models.transition import Transition

    transition = session.get(Transition, transition_id)
    if transition is None:
        raise NotFoundError("Transition not found")
    return transition


def validate_due_date(
    due_date: datetime,
    transition: Transition,
    entity: str = "Task",
    now: datetime | None = None,
) -> datetime:
    """Check a due date against the transition window and today.

    Args:
        due_date: Candidate due date (naive values are taken as UTC).
        transition: Owning transition.
        entity: Label used in the window error ("Task" / "Milestone").
        now: Override for the current time (tests).

    Returns:
        The due date normalized to aware UTC.

    Raises:
        ValidationError: Past due date, or outside the transition window.
    """
    due = to_utc(due_date)
    if due < start_of_today(now):
        raise ValidationError("Due date cannot be in the past")

    start = to_utc(transition.start_date)
    end = to_utc(transition.end_date)
    if due < start or due > end:
        raise ValidationError(f"{entity} due date must be within transition timeframe")
    return due
