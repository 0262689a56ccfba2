"""
Database module initialization.
Exports database components for use throughout the application.
"""

from database.base import Base, engine, SessionLocal, create_db_engine
from database.session import get_db_context, atomic
from database.dependencies import get_db
from database.utils import (
    check_db_connection,
    get_db_info,
    create_all_tables,
)

__all__ = [
    # Base components
    "Base",
    "engine",
    "SessionLocal",
    "create_db_engine",
    # Session management
    "get_db_context",
    "atomic",
    # FastAPI dependencies
    "get_db",
    # Utilities
    "check_db_connection",
    "get_db_info",
    "create_all_tables",
]
