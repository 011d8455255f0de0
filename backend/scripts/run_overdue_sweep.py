#!/usr/bin/env python3
"""Run one overdue sweep against the configured database.

Marks PENDING/IN_PROGRESS milestones and NOT_STARTED/ASSIGNED/IN_PROGRESS
tasks whose due date has passed as OVERDUE. Intended for cron when the
in-process scheduler is disabled (OVERDUE_SWEEP_ENABLED=false).

Usage:
    python backend/scripts/run_overdue_sweep.py
    python backend/scripts/run_overdue_sweep.py --now 2026-01-01T00:00:00Z
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
logger = logging.getLogger("run_overdue_sweep")


def main() -> None:
    parser = argparse.ArgumentParser(description="Mark past-due milestones and tasks OVERDUE")
    parser.add_argument("--now", type=datetime.fromisoformat, default=None,
                        help="Reference time (ISO 8601); defaults to current UTC time")
    args = parser.parse_args()

    from sqlmodel import Session

    from tracker.db.database import create_db_and_tables, engine
    from tracker.engines.overdue import sweep_overdue
    from tracker.engines.temporal import to_utc

    create_db_and_tables()
    now = to_utc(args.now) if args.now else None

    with Session(engine) as session:
        result = sweep_overdue(session, now=now)

    logger.info("Sweep finished: %d milestone(s), %d task(s)", result["milestones_updated"], result["tasks_updated"])
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
