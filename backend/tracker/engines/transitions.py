"""Transition Manager — create, list, fetch and status changes for transitions."""

from __future__ import annotations

import logging
import math

from sqlalchemy import func
from sqlmodel import Session, select

from tracker.db.database import commit_or_rollback
from tracker.engines.errors import ValidationError
from tracker.engines.temporal import get_transition_or_raise, utcnow
from tracker.models.pagination import Pagination
from tracker.models.transition import (
    Transition,
    TransitionCreate,
    TransitionPage,
    TransitionRead,
    TransitionStatus,
)

logger = logging.getLogger(__name__)


class TransitionManager:
    def __init__(self, session: Session) -> None:
        self.session = session

    def create_transition(self, data: TransitionCreate) -> Transition:
        """Create a transition. The window must be non-empty."""
        if data.end_date <= data.start_date:
            raise ValidationError("End date must be after start date")

        transition = Transition(**data.model_dump())
        self.session.add(transition)
        commit_or_rollback(self.session)
        self.session.refresh(transition)
        logger.info("Created transition %s (%s)", transition.id, transition.contract_number)
        return transition

    def list_transitions(self, page: int = 1, limit: int = 20) -> TransitionPage:
        """Transitions ordered by start date, newest window last."""
        statement = (
            select(Transition)
            .order_by(Transition.start_date.asc(), Transition.id.asc())  # type: ignore[attr-defined]
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = self.session.exec(statement).all()
        total = self.session.exec(select(func.count()).select_from(Transition)).one()
        return TransitionPage(
            data=[TransitionRead.model_validate(r) for r in rows],
            pagination=Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit)),
        )

    def get_transition(self, transition_id: str) -> Transition:
        return get_transition_or_raise(self.session, transition_id)

    def update_transition_status(self, transition_id: str, status: TransitionStatus) -> Transition:
        transition = get_transition_or_raise(self.session, transition_id)
        transition.status = status
        transition.updated_at = utcnow()
        self.session.add(transition)
        commit_or_rollback(self.session)
        self.session.refresh(transition)
        logger.info("Transition %s status -> %s", transition_id, status)
        return transition
