"""Overdue sweep — flips past-due milestones and open tasks to OVERDUE.

Both sweeps share one timestamp and one commit, so a run either marks
everything that was due before `now` or nothing.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlmodel import Session

from tracker.db.database import commit_or_rollback
from tracker.engines.milestones import MilestoneManager
from tracker.engines.task_hierarchy import TaskHierarchyManager
from tracker.engines.temporal import to_utc, utcnow

logger = logging.getLogger(__name__)


def sweep_overdue(session: Session, now: datetime | None = None) -> dict:
    """Run the milestone and task sweeps in a single transaction.

    Returns:
        {"message", "milestones_updated", "tasks_updated", "swept_at"}
    """
    now = to_utc(now) if now else utcnow()
    milestones = MilestoneManager(session).sweep_overdue(now=now, commit=False)
    tasks = TaskHierarchyManager(session).sweep_overdue(now=now, commit=False)
    commit_or_rollback(session)

    logger.info(
        "Overdue sweep complete: %d milestone(s), %d task(s)",
        milestones["updated"], tasks["updated"],
    )
    return {
        "message": "Overdue statuses updated",
        "milestones_updated": milestones["updated"],
        "tasks_updated": tasks["updated"],
        "swept_at": now.isoformat(),
    }
