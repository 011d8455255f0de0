"""Transition API endpoints.

POST  /api/v1/transitions              — create
GET   /api/v1/transitions              — paginated list
GET   /api/v1/transitions/{id}         — single transition
PATCH /api/v1/transitions/{id}/status  — change status
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from tracker.config import settings
from tracker.db.database import get_session
from tracker.engines.transitions import TransitionManager
from tracker.models.transition import (
    TransitionCreate,
    TransitionPage,
    TransitionRead,
    TransitionStatusUpdate,
)

router = APIRouter(prefix="/api/v1/transitions", tags=["transitions"])


def get_manager(session: Session = Depends(get_session)) -> TransitionManager:
    return TransitionManager(session)


@router.post("", response_model=TransitionRead, status_code=201)
def create_transition(
    request: TransitionCreate,
    manager: TransitionManager = Depends(get_manager),
) -> TransitionRead:
    return TransitionRead.model_validate(manager.create_transition(request))


@router.get("", response_model=TransitionPage)
def list_transitions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_limit, ge=1, le=settings.max_page_limit),
    manager: TransitionManager = Depends(get_manager),
) -> TransitionPage:
    return manager.list_transitions(page=page, limit=limit)


@router.get("/{transition_id}", response_model=TransitionRead)
def get_transition(
    transition_id: str,
    manager: TransitionManager = Depends(get_manager),
) -> TransitionRead:
    return TransitionRead.model_validate(manager.get_transition(transition_id))


@router.patch("/{transition_id}/status", response_model=TransitionRead)
def update_transition_status(
    transition_id: str,
    request: TransitionStatusUpdate,
    manager: TransitionManager = Depends(get_manager),
) -> TransitionRead:
    return TransitionRead.model_validate(manager.update_transition_status(transition_id, request.status))
