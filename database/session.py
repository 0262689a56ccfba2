"""
Database session management utilities.
Provides context managers for sessions and transactional blocks.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session

from database.base import SessionLocal


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Database session context manager for code running outside a request.

    Usage:
        with get_db_context() as db:
            sync_permissions(db)
            db.commit()
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Generator[Session, None, None]:
    """
    Run a block of writes as one unit.

    Commits when the block exits cleanly and rolls back on any exception,
    which is then re-raised to the caller.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
