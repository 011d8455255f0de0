"""Overdue Scheduler — periodic background overdue sweep.

Runs tracker.engines.overdue.sweep_overdue on a configurable interval as an
asyncio background task started from the FastAPI lifespan. Deployments that
prefer cron can disable it and call scripts/run_overdue_sweep.py instead.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.engine import Engine
from sqlmodel import Session

from tracker.engines.overdue import sweep_overdue

logger = logging.getLogger(__name__)

ERROR_BACKOFF_SECONDS = 300


class OverdueScheduler:
    """Marks past-due milestones and tasks OVERDUE every `interval_hours`.

    Usage:
        scheduler = OverdueScheduler(engine, interval_hours=1.0, enabled=True)
        await scheduler.start()
        # ... app runs ...
        scheduler.stop()
    """

    def __init__(
        self,
        db_engine: Engine,
        interval_hours: float = 1.0,
        enabled: bool = True,
    ) -> None:
        self._engine = db_engine
        self._interval_seconds = interval_hours * 3600
        self._enabled = enabled
        self._task: asyncio.Task | None = None
        self._running = False
        self._last_result: dict | None = None

    async def start(self) -> None:
        """Start the scheduler as a background task."""
        if not self._enabled:
            logger.info("Overdue scheduler disabled")
            return
        if self._running:
            logger.warning("Overdue scheduler already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "Overdue scheduler started (interval: %.2f hours)",
            self._interval_seconds / 3600,
        )

    def stop(self) -> None:
        """Stop the scheduler."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            logger.info("Overdue scheduler stopped")

    async def _loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._interval_seconds)
                if not self._running:
                    break
                # Blocking database work stays off the event loop
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(None, self.run_once)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Overdue scheduler error: %s", e, exc_info=True)
                await asyncio.sleep(ERROR_BACKOFF_SECONDS)

    def run_once(self) -> dict:
        """Run one sweep in its own session and remember the result."""
        with Session(self._engine) as session:
            self._last_result = sweep_overdue(session)
        return self._last_result

    @property
    def is_running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()

    def get_status(self) -> dict:
        """Get scheduler status for health checks."""
        return {
            "enabled": self._enabled,
            "running": self.is_running,
            "interval_hours": self._interval_seconds / 3600,
            "last_result": self._last_result,
        }
