"""
User model for SQLAlchemy ORM.
Represents the users table in the database.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, JSON, String, Uuid
from sqlalchemy.orm import relationship

from config import settings
from database.base import Base
from models.associations import permission_user, role_user, team_user
from models.mixins import SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin


class User(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """
    User model representing an administrator or managed account.

    Attributes:
        id (UUID): Primary key, auto-generated
        name (str): Display name
        username (str): Unique login handle, generated from email or name when omitted
        email (str): Unique email address (optional)
        password_hash (str): PBKDF2 hash, None for accounts that cannot log in
        is_active (bool): Inactive accounts cannot authenticate
        email_verified_at (datetime): When the email address was verified
        api_token_hash (str): SHA-256 of the current bearer token
        frontend_preferences (dict): UI preferences such as timezone and locale
        datatable_preferences (dict): Saved DataTable state keyed by table name
        created_by_user_id (UUID): User who created this account

    Relationships:
        roles: Many-to-many with Role
        teams: Many-to-many with Team
        permissions: Direct many-to-many grants with Permission
        notifications: One-to-many with Notification
    """

    __tablename__ = "users"

    name = Column(
        String(255),
        nullable=False,
        comment="Display name"
    )

    username = Column(
        String(100),
        nullable=False,
        unique=True,
        comment="Unique login handle"
    )

    email = Column(
        String(255),
        nullable=True,
        unique=True,
        comment="Unique email address"
    )

    password_hash = Column(
        String(255),
        nullable=True,
        comment="PBKDF2 password hash"
    )

    is_active = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether the account may sign in"
    )

    email_verified_at = Column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the email address was verified"
    )

    api_token_hash = Column(
        String(64),
        nullable=True,
        unique=True,
        comment="SHA-256 hash of the active API token"
    )

    frontend_preferences = Column(
        JSON,
        nullable=False,
        default=dict,
        comment="UI preferences (timezone, locale)"
    )

    datatable_preferences = Column(
        JSON,
        nullable=False,
        default=dict,
        comment="Saved DataTable state keyed by table name"
    )

    created_by_user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="User who created this account"
    )

    # Relationships
    roles = relationship("Role", secondary=role_user, back_populates="users", lazy="selectin")
    teams = relationship("Team", secondary=team_user, back_populates="users", lazy="selectin")
    permissions = relationship("Permission", secondary=permission_user, back_populates="users", lazy="selectin")
    notifications = relationship(
        "Notification",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    created_by = relationship("User", remote_side="User.id")

    __table_args__ = (
        Index("ix_users_is_active", "is_active"),
        Index("ix_users_created_at", "created_at"),
    )

    @property
    def role_names(self) -> list:
        return [role.name for role in self.roles]

    @property
    def is_super_admin(self) -> bool:
        return settings.super_admin_role in self.role_names

    def has_role(self, name: str) -> bool:
        return name in self.role_names

    def permission_names(self) -> set:
        """All permission names granted directly or through roles."""
        names = {permission.name for permission in self.permissions}
        for role in self.roles:
            names.update(permission.name for permission in role.permissions)
        return names

    def has_permission(self, name: str) -> bool:
        """Super admins hold every permission."""
        if self.is_super_admin:
            return True
        return name in self.permission_names()

    def __repr__(self) -> str:
        """String representation of User model."""
        return f"<User(id={self.id}, username='{self.username}', email='{self.email}')>"

    def to_dict(self) -> dict:
        """
        Convert user model to dictionary.

        Returns:
            dict: User data as dictionary (never includes password or token hashes)
        """
        return {
            "id": str(self.id),
            "name": self.name,
            "username": self.username,
            "email": self.email,
            "is_active": self.is_active,
            "email_verified_at": self.email_verified_at.isoformat() if self.email_verified_at else None,
            "roles": self.role_names,
            "teams": [team.name for team in self.teams],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
