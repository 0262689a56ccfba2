"""
Role and Permission models for SQLAlchemy ORM.
Represent the roles and permissions tables in the database.
"""

from sqlalchemy import Boolean, Column, String, Text
from sqlalchemy.orm import relationship

from database.base import Base
from models.associations import permission_role, permission_user, role_user
from models.mixins import SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin


class Role(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """
    Role model grouping permissions.

    Attributes:
        name (str): Unique machine name, e.g. "editor"
        display_name (str): Human readable name
        description (str): Optional description
        is_system (bool): System roles cannot be renamed or deleted

    Relationships:
        permissions: Many-to-many with Permission
        users: Many-to-many with User
    """

    __tablename__ = "roles"

    name = Column(
        String(100),
        nullable=False,
        unique=True,
        comment="Unique role name"
    )

    display_name = Column(
        String(255),
        nullable=True,
        comment="Human readable role name"
    )

    description = Column(
        Text,
        nullable=True,
        comment="Role description"
    )

    is_system = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Protected role that cannot be renamed or deleted"
    )

    permissions = relationship("Permission", secondary=permission_role, back_populates="roles", lazy="selectin")
    users = relationship("User", secondary=role_user, back_populates="roles")

    @property
    def permission_names(self) -> list:
        return sorted(permission.name for permission in self.permissions)

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name='{self.name}')>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "display_name": self.display_name,
            "description": self.description,
            "is_system": self.is_system,
            "permissions": self.permission_names,
        }


class Permission(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Permission model. Names follow the "<action> <entity>" convention,
    e.g. "edit users".
    """

    __tablename__ = "permissions"

    name = Column(
        String(150),
        nullable=False,
        unique=True,
        comment="Permission name, '<action> <entity>'"
    )

    display_name = Column(
        String(255),
        nullable=True,
        comment="Human readable permission name"
    )

    roles = relationship("Role", secondary=permission_role, back_populates="permissions")
    users = relationship("User", secondary=permission_user, back_populates="permissions")

    def __repr__(self) -> str:
        return f"<Permission(name='{self.name}')>"
