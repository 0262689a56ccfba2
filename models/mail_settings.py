"""
Mail settings model for SQLAlchemy ORM.
Represents the mail_settings table in the database.
"""

from enum import Enum

from sqlalchemy import Boolean, Column, Integer, String, UniqueConstraint, Uuid

from database.base import Base
from models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class MailScope(str, Enum):
    APP = "app"
    TEAM = "team"
    USER = "user"


class MailSettings(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Outgoing mail configuration for one scope.

    App scope has no owner; team and user scopes reference the team or user
    id in owner_id.
    """

    __tablename__ = "mail_settings"

    scope = Column(String(16), nullable=False, comment="app, team or user")
    owner_id = Column(Uuid(as_uuid=True), nullable=True, comment="Team or user id for scoped settings")

    provider = Column(String(50), nullable=False, default="smtp", comment="Mail provider")
    host = Column(String(255), nullable=True, comment="SMTP host")
    port = Column(Integer, nullable=True, comment="SMTP port")
    username = Column(String(255), nullable=True, comment="SMTP username")
    password = Column(String(255), nullable=True, comment="SMTP password")
    encryption = Column(String(10), nullable=True, comment="tls or ssl")
    from_address = Column(String(255), nullable=True, comment="Sender address")
    from_name = Column(String(255), nullable=True, comment="Sender name")

    is_active = Column(
        Boolean,
        nullable=False,
        default=True,
        comment="Inactive settings are skipped during resolution"
    )

    __table_args__ = (
        UniqueConstraint("scope", "owner_id", name="uq_mail_settings_scope_owner"),
    )

    def __repr__(self) -> str:
        return f"<MailSettings(scope='{self.scope}', owner_id={self.owner_id}, host='{self.host}')>"

    def to_dict(self) -> dict:
        """Password is never included."""
        return {
            "id": str(self.id),
            "scope": self.scope,
            "owner_id": str(self.owner_id) if self.owner_id else None,
            "provider": self.provider,
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "has_password": bool(self.password),
            "encryption": self.encryption,
            "from_address": self.from_address,
            "from_name": self.from_name,
            "is_active": self.is_active,
        }
