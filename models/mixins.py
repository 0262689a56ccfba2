"""
Shared column mixins for SQLAlchemy models.
"""

from uuid import uuid4

from sqlalchemy import Column, DateTime, Uuid
from sqlalchemy.sql import func


class UUIDPrimaryKeyMixin:
    """Adds a UUID primary key generated on the Python side."""

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        nullable=False,
        comment="Unique record ID"
    )


class TimestampMixin:
    """Adds created_at / updated_at columns maintained by the database."""

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="When the record was created"
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        comment="When the record was last modified"
    )


class SoftDeleteMixin:
    """Adds a nullable deleted_at column. Rows with a value are hidden from listings."""

    deleted_at = Column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the record was soft deleted"
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
