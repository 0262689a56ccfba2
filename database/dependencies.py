"""
FastAPI dependency injection for database sessions.
Provides the per-request database session used by every API endpoint.
"""

from typing import Generator

import logfire
from sqlalchemy.orm import Session

from database.base import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that provides a database session.

    Usage:
        @router.get("/users")
        def list_users(db: Session = Depends(get_db)):
            return db.query(User).all()

    The session is rolled back if the request handler raises and is always
    closed afterwards, returning the connection to the pool.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        logfire.debug("Rolling back request session after error")
        db.rollback()
        raise
    finally:
        db.close()
