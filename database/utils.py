"""
Database utility functions.
Provides helpers for schema bootstrap and health checks.
"""

import logfire
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from database.base import Base, engine
from config import settings


def check_db_connection(bind: Engine = engine) -> bool:
    """
    Check if database connection is working.

    Returns:
        bool: True if connection is successful, False otherwise
    """
    try:
        with bind.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except OperationalError:
        return False


def sanitize_db_url(url: str) -> str:
    """
    Hide password in database URL for safe logging.

    Replaces the password portion of a database connection URL with "***"
    to prevent credentials from appearing in logs or error messages.
    """
    if "@" not in url:
        return url

    try:
        protocol, rest = url.split("://", 1)
        credentials, host = rest.split("@", 1)
        username = credentials.split(":", 1)[0]
        return f"{protocol}://{username}:***@{host}"
    except ValueError:
        return url


def get_db_info() -> dict:
    """
    Get database connection information and status.

    Returns:
        dict: Database information including connection status and URL (sanitized)
    """
    is_connected = check_db_connection()

    return {
        "status": "connected" if is_connected else "disconnected",
        "url": sanitize_db_url(settings.database_url),
        "dialect": engine.dialect.name,
        "environment": settings.environment,
    }


def create_all_tables(bind: Engine = engine) -> None:
    """
    Create every mapped table that does not exist yet.

    Used for SQLite development databases and tests; production schemas are
    managed by Alembic.
    """
    import models  # noqa: F401  (registers every mapper on Base.metadata)

    Base.metadata.create_all(bind=bind)
    logfire.info("Database tables ensured", dialect=bind.dialect.name, tables=len(Base.metadata.tables))
