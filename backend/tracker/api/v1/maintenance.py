"""Maintenance API — on-demand overdue sweep.

POST /api/v1/maintenance/overdue-sweep — mark past-due milestones/tasks OVERDUE now
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from tracker.db.database import get_session
from tracker.engines.overdue import sweep_overdue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/maintenance", tags=["maintenance"])


class OverdueSweepResponse(BaseModel):
    message: str
    milestones_updated: int
    tasks_updated: int
    swept_at: str


@router.post("/overdue-sweep", response_model=OverdueSweepResponse)
def run_overdue_sweep(session: Session = Depends(get_session)) -> OverdueSweepResponse:
    logger.info("Overdue sweep requested via API")
    return OverdueSweepResponse(**sweep_overdue(session))
