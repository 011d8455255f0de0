"""Transition Tracker FastAPI Application.

Entry point for the backend server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tracker.api.health import VERSION, set_scheduler
from tracker.api.health import router as health_router
from tracker.api.v1.maintenance import router as maintenance_router
from tracker.api.v1.milestones import router as milestones_router
from tracker.api.v1.tasks import router as tasks_router
from tracker.api.v1.transitions import router as transitions_router
from tracker.config import settings
from tracker.db.database import create_db_and_tables, engine
from tracker.engines.errors import TrackerError
from tracker.engines.scheduler import OverdueScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    create_db_and_tables()

    scheduler = OverdueScheduler(
        engine,
        interval_hours=settings.overdue_sweep_interval_hours,
        enabled=settings.overdue_sweep_enabled,
    )
    await scheduler.start()
    set_scheduler(scheduler)

    yield

    scheduler.stop()
    set_scheduler(None)


app = FastAPI(
    title="Transition Tracker",
    description="Contract transition milestones and task hierarchy",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Unhandled errors return a generic 500 body
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    if isinstance(exc, HTTPException):
        raise exc
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error."},
    )


# Routes
app.include_router(health_router)
app.include_router(transitions_router)
app.include_router(tasks_router)
app.include_router(milestones_router)
app.include_router(maintenance_router)


@app.get("/")
async def root():
    return {"name": "Transition Tracker", "version": VERSION, "status": "running"}
