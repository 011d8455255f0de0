"""Milestone Manager — CRUD, bulk delete and overdue sweep for milestones.

Milestones share the temporal rules in tracker.engines.temporal with tasks.
Every create/update/delete also stages an audit row in the same commit.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from sqlalchemy import update
from sqlmodel import Session, select

from tracker.db.database import commit_or_rollback
from tracker.engines.audit import purge_audit, record_audit, snapshot
from tracker.engines.errors import NotFoundError, ValidationError
from tracker.engines.query import MilestoneListQuery, run_list_query
from tracker.engines.temporal import get_transition_or_raise, to_utc, utcnow, validate_due_date
from tracker.models.milestone import (
    MILESTONE_SWEEPABLE_STATUSES,
    Milestone,
    MilestoneCreate,
    MilestonePage,
    MilestoneRead,
    MilestoneUpdate,
)
from tracker.models.task import Task

logger = logging.getLogger(__name__)

ENTITY = "milestone"


class MilestoneManager:
    """Milestone operations scoped to a transition."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create_milestone(
        self,
        transition_id: str,
        data: MilestoneCreate,
        user_id: str | None = None,
    ) -> Milestone:
        """Create a milestone, or return the existing one with the same title and due date."""
        transition = get_transition_or_raise(self.session, transition_id)
        due_date = validate_due_date(data.due_date, transition, entity="Milestone")

        existing = self.session.exec(
            select(Milestone)
            .where(Milestone.transition_id == transition_id)
            .where(Milestone.title == data.title)
            .where(Milestone.due_date == due_date)
        ).first()
        if existing is not None:
            logger.info("Milestone create deduplicated: returning existing milestone %s", existing.id)
            return existing

        milestone = Milestone(
            title=data.title,
            description=data.description,
            due_date=due_date,
            priority=data.priority,
            transition_id=transition_id,
        )
        self.session.add(milestone)
        record_audit(
            self.session, ENTITY, milestone.id, "CREATE",
            new_values=snapshot(milestone), user_id=user_id,
        )
        commit_or_rollback(self.session)
        self.session.refresh(milestone)
        logger.info("Created milestone %s in transition %s", milestone.id, transition_id)
        return milestone

    def list_milestones(
        self,
        transition_id: str,
        query: MilestoneListQuery,
        now: datetime | None = None,
    ) -> MilestonePage:
        get_transition_or_raise(self.session, transition_id)
        rows, pagination = run_list_query(self.session, Milestone, transition_id, query, now=now)
        return MilestonePage(data=[MilestoneRead.model_validate(r) for r in rows], pagination=pagination)

    def get_milestone(self, transition_id: str, milestone_id: str) -> Milestone:
        get_transition_or_raise(self.session, transition_id)
        milestone = self.session.get(Milestone, milestone_id)
        if milestone is None or milestone.transition_id != transition_id:
            raise NotFoundError("Milestone not found")
        return milestone

    def update_milestone(
        self,
        transition_id: str,
        milestone_id: str,
        patch: MilestoneUpdate,
        user_id: str | None = None,
    ) -> Milestone:
        """Apply a partial update; the due date is re-validated only when supplied."""
        milestone = self.get_milestone(transition_id, milestone_id)
        before = snapshot(milestone)
        changes = patch.model_dump(exclude_unset=True)

        if patch.due_date is not None:
            transition = get_transition_or_raise(self.session, transition_id)
            changes["due_date"] = validate_due_date(patch.due_date, transition, entity="Milestone")

        for key, value in changes.items():
            if value is None and key != "description":
                continue
            setattr(milestone, key, value)
        milestone.updated_at = utcnow()
        self.session.add(milestone)

        record_audit(
            self.session, ENTITY, milestone.id, "UPDATE",
            old_values=before, new_values=snapshot(milestone), user_id=user_id,
        )
        commit_or_rollback(self.session)
        self.session.refresh(milestone)
        return milestone

    def delete_milestone(
        self,
        transition_id: str,
        milestone_id: str,
        user_id: str | None = None,
    ) -> dict:
        """Delete one milestone and detach the tasks that referenced it."""
        milestone = self.get_milestone(transition_id, milestone_id)
        before = snapshot(milestone)

        self._detach_tasks([milestone.id])
        purge_audit(self.session, ENTITY, [milestone.id])
        self.session.delete(milestone)
        record_audit(self.session, ENTITY, milestone_id, "DELETE", old_values=before, user_id=user_id)
        commit_or_rollback(self.session)

        logger.info("Deleted milestone %s", milestone_id)
        return {"message": "Milestone deleted successfully"}

    def bulk_delete_milestones(
        self,
        transition_id: str,
        milestone_ids: Sequence[str],
        user_id: str | None = None,
    ) -> dict:
        """Delete several milestones at once; all ids must exist in the transition.

        Raises:
            ValidationError: No ids given.
            NotFoundError: Transition absent, or any id missing from it.
        """
        ids = list(dict.fromkeys(milestone_ids))
        if not ids:
            raise ValidationError("At least one milestone id is required")
        get_transition_or_raise(self.session, transition_id)

        milestones = self.session.exec(
            select(Milestone)
            .where(Milestone.transition_id == transition_id)
            .where(Milestone.id.in_(ids))  # type: ignore[union-attr]
        ).all()
        if len(milestones) != len(ids):
            raise NotFoundError("Some milestones not found")

        self._detach_tasks(ids)
        purge_audit(self.session, ENTITY, ids)
        for milestone in milestones:
            before = snapshot(milestone)
            self.session.delete(milestone)
            record_audit(self.session, ENTITY, milestone.id, "DELETE", old_values=before, user_id=user_id)
        commit_or_rollback(self.session)

        logger.info("Bulk-deleted %d milestone(s) from transition %s", len(ids), transition_id)
        return {"message": f"{len(ids)} milestones deleted successfully"}

    def sweep_overdue(self, now: datetime | None = None, commit: bool = True) -> dict:
        """Mark PENDING/IN_PROGRESS milestones past their due date as OVERDUE."""
        now = to_utc(now) if now else utcnow()
        result = self.session.exec(  # type: ignore[call-overload]
            update(Milestone)
            .where(Milestone.due_date < now)
            .where(Milestone.status.in_(MILESTONE_SWEEPABLE_STATUSES))  # type: ignore[attr-defined]
            .values(status="OVERDUE", updated_at=now)
        )
        if commit:
            commit_or_rollback(self.session)
        updated = result.rowcount or 0
        if updated:
            logger.info("Overdue sweep: %d milestone(s) marked OVERDUE", updated)
        return {"message": "Milestone statuses updated", "updated": updated}

    def _detach_tasks(self, milestone_ids: Sequence[str]) -> None:
        self.session.exec(  # type: ignore[call-overload]
            update(Task)
            .where(Task.milestone_id.in_(milestone_ids))  # type: ignore[union-attr]
            .values(milestone_id=None)
        )
