"""
Notification model for SQLAlchemy ORM.
Represents the notifications table in the database.
"""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import relationship

from database.base import Base
from models.mixins import SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notification(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """
    Persisted in-app notification for a single user.

    Attributes:
        user_id (UUID): Recipient
        type (str): Free-form category, e.g. "user.created"
        title (str): Headline, always present
        subtitle (str): Optional secondary line
        content (str): Optional body
        link (str): Optional URL the notification points to
        level (str): success, info, warning or error
        read_at (datetime): When the recipient marked it read
    """

    __tablename__ = "notifications"

    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="Recipient user"
    )

    type = Column(String(100), nullable=False, default="general", comment="Notification category")
    title = Column(String(255), nullable=False, comment="Headline")
    subtitle = Column(String(255), nullable=True, comment="Secondary line")
    content = Column(Text, nullable=True, comment="Body")
    link = Column(String(500), nullable=True, comment="Target URL")
    level = Column(String(16), nullable=False, default=NotificationLevel.INFO.value, comment="Severity level")

    read_at = Column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the notification was read"
    )

    user = relationship("User", back_populates="notifications")

    __table_args__ = (
        Index("ix_notifications_user_id", "user_id"),
        Index("ix_notifications_user_read", "user_id", "read_at"),
    )

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, user_id={self.user_id}, title='{self.title}')>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "type": self.type,
            "title": self.title,
            "subtitle": self.subtitle,
            "content": self.content,
            "link": self.link,
            "level": self.level,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
