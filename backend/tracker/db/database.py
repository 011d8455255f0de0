"""Database setup — SQLite with WAL mode via SQLModel/SQLAlchemy.

The engine is created once per process; request handlers and scripts open a
short-lived Session per unit of work and hand it to the managers in
tracker.engines. Managers never create sessions themselves.
"""

from __future__ import annotations

import os

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, create_engine

from tracker.config import settings
from tracker.engines.errors import ConflictError


def get_database_url() -> str:
    """Get database URL, ensuring the data directory exists."""
    url = settings.database_url
    if url.startswith("sqlite:///"):
        db_path = url.replace("sqlite:///", "")
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
    return url


@event.listens_for(Engine, "connect")
def set_sqlite_pragmas(dbapi_connection, connection_record):
    """Enable WAL mode for SQLite connections."""
    if type(dbapi_connection).__module__ != "sqlite3":
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
    cursor.execute("PRAGMA busy_timeout=5000")    # 5s wait on lock
    cursor.close()


engine = create_engine(
    get_database_url(),
    echo=settings.database_echo,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
)


def create_db_and_tables(bind: Engine | None = None) -> None:
    """Create all tables defined by SQLModel metadata."""
    # Register table classes on the shared metadata
    from tracker.models import audit, milestone, task, transition  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """Dependency for FastAPI endpoints."""
    with Session(engine) as session:
        yield session


def commit_or_rollback(session: Session) -> None:
    """Commit the session's pending work as one transaction.

    Rolls back and re-raises on failure; integrity violations surface as
    ConflictError so callers see a distinguishable error kind.
    """
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ConflictError(f"Conflicting write: {e.orig}") from e
    except Exception:
        session.rollback()
        raise
