"""
Database configuration and SQLAlchemy setup.

This module provides the core database infrastructure:
- SQLAlchemy engine for connection pooling
- Session factory for database transactions
- Declarative base for ORM models
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from config import settings


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine with pooling suited to the backend.

    SQLite in-memory databases must share one connection, so they get a
    StaticPool; file-backed SQLite needs cross-thread access for FastAPI's
    threadpool. Everything else uses a QueuePool.
    """
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            return create_engine(url, connect_args=connect_args, poolclass=StaticPool, echo=echo)
        return create_engine(url, connect_args=connect_args, echo=echo)

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before using them
        pool_recycle=3600,   # Recycle connections after 1 hour
        echo=echo,
    )


# Create SQLAlchemy engine
engine = create_db_engine(settings.database_url, echo=settings.debug)

# Create SessionLocal class for database sessions
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Create declarative base for ORM models
Base = declarative_base()
