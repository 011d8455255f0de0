"""Milestone API — CRUD and bulk delete for a transition's milestones.

POST   /api/v1/transitions/{transition_id}/milestones               — create
GET    /api/v1/transitions/{transition_id}/milestones               — filtered, paginated list
POST   /api/v1/transitions/{transition_id}/milestones/bulk-delete   — delete many
GET    /api/v1/transitions/{transition_id}/milestones/{id}          — single milestone
PUT    /api/v1/transitions/{transition_id}/milestones/{id}          — partial update
DELETE /api/v1/transitions/{transition_id}/milestones/{id}          — delete
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session

from tracker.db.database import get_session
from tracker.engines.milestones import MilestoneManager
from tracker.engines.query import MilestoneListQuery
from tracker.models.milestone import (
    BulkDeleteRequest,
    MilestoneCreate,
    MilestonePage,
    MilestoneRead,
    MilestoneUpdate,
)

router = APIRouter(prefix="/api/v1/transitions/{transition_id}/milestones", tags=["milestones"])


class MessageResponse(BaseModel):
    message: str


def get_manager(session: Session = Depends(get_session)) -> MilestoneManager:
    return MilestoneManager(session)


@router.post("", response_model=MilestoneRead, status_code=201)
def create_milestone(
    transition_id: str,
    request: MilestoneCreate,
    manager: MilestoneManager = Depends(get_manager),
) -> MilestoneRead:
    return MilestoneRead.model_validate(manager.create_milestone(transition_id, request))


@router.get("", response_model=MilestonePage)
def list_milestones(
    transition_id: str,
    query: Annotated[MilestoneListQuery, Query()],
    manager: MilestoneManager = Depends(get_manager),
) -> MilestonePage:
    return manager.list_milestones(transition_id, query)


@router.post("/bulk-delete", response_model=MessageResponse)
def bulk_delete_milestones(
    transition_id: str,
    request: BulkDeleteRequest,
    manager: MilestoneManager = Depends(get_manager),
) -> MessageResponse:
    return MessageResponse(**manager.bulk_delete_milestones(transition_id, request.milestone_ids))


@router.get("/{milestone_id}", response_model=MilestoneRead)
def get_milestone(
    transition_id: str,
    milestone_id: str,
    manager: MilestoneManager = Depends(get_manager),
) -> MilestoneRead:
    return MilestoneRead.model_validate(manager.get_milestone(transition_id, milestone_id))


@router.put("/{milestone_id}", response_model=MilestoneRead)
def update_milestone(
    transition_id: str,
    milestone_id: str,
    request: MilestoneUpdate,
    manager: MilestoneManager = Depends(get_manager),
) -> MilestoneRead:
    return MilestoneRead.model_validate(manager.update_milestone(transition_id, milestone_id, request))


@router.delete("/{milestone_id}", response_model=MessageResponse)
def delete_milestone(
    transition_id: str,
    milestone_id: str,
    manager: MilestoneManager = Depends(get_manager),
) -> MessageResponse:
    return MessageResponse(**manager.delete_milestone(transition_id, milestone_id))
