"""Health check endpoint — database connectivity and overdue scheduler state."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlmodel import Session

from tracker.config import settings
from tracker.db.database import get_session
from tracker.engines.scheduler import OverdueScheduler

router = APIRouter()

VERSION = "0.1.0"

_scheduler: OverdueScheduler | None = None


def set_scheduler(scheduler: OverdueScheduler | None) -> None:
    """Wire up the overdue scheduler (called from main.py lifespan)."""
    global _scheduler
    _scheduler = scheduler


class HealthStatus(BaseModel):
    status: str  # "healthy" | "degraded" | "unhealthy"
    version: str
    checks: dict[str, dict]
    dependencies: dict[str, str]  # Simplified view for frontend
    timestamp: datetime


@router.get("/health", response_model=HealthStatus)
def health_check(session: Session = Depends(get_session)) -> HealthStatus:
    """Check the database and background sweep."""
    checks: dict[str, dict] = {}
    overall_healthy = True
    has_warning = False

    # 1. Database
    try:
        conn = session.connection()
        conn.execute(text("SELECT 1")).fetchone()
        detail = "connected"
        if conn.dialect.name == "sqlite":
            mode = conn.execute(text("PRAGMA journal_mode")).fetchone()
            detail = f"journal_mode={mode[0]}"
        checks["database"] = {"status": "ok", "detail": detail}
    except Exception as e:
        checks["database"] = {"status": "error", "detail": str(e)}
        overall_healthy = False

    # 2. Overdue scheduler
    if not settings.overdue_sweep_enabled:
        checks["overdue_scheduler"] = {"status": "disabled", "detail": "set OVERDUE_SWEEP_ENABLED=true to enable"}
    elif _scheduler is not None and _scheduler.is_running:
        status = _scheduler.get_status()
        checks["overdue_scheduler"] = {"status": "ok", "detail": f"every {status['interval_hours']:g}h"}
    else:
        checks["overdue_scheduler"] = {"status": "warning", "detail": "not running"}
        has_warning = True

    dependencies = {name: check["status"] for name, check in checks.items()}

    if overall_healthy:
        status = "degraded" if has_warning else "healthy"
    else:
        status = "unhealthy"

    return HealthStatus(
        status=status,
        version=VERSION,
        checks=checks,
        dependencies=dependencies,
        timestamp=datetime.now(timezone.utc),
    )
