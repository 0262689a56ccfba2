"""
Role management with permission assignment.

System roles (super_admin) cannot be renamed or deleted.
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

import logfire
from sqlalchemy.orm import Session

from config import settings
from models.role import Role
from services.exceptions import DuplicateRecordError, InvalidOperationError, NotFoundError
from services.permission_matrix import sync_permissions
from services.users import resolve_permissions


def get_role(db: Session, role_id: UUID) -> Role:
    role = db.query(Role).filter(Role.id == role_id, Role.deleted_at.is_(None)).first()
    if role is None:
        raise NotFoundError("Role", role_id)
    return role


def _name_taken(db: Session, name: str, exclude_id: Optional[UUID] = None) -> bool:
    query = db.query(Role.id).filter(Role.name == name)
    if exclude_id is not None:
        query = query.filter(Role.id != exclude_id)
    return query.first() is not None


def create_role(
    db: Session,
    *,
    name: str,
    display_name: Optional[str] = None,
    description: Optional[str] = None,
    permissions: Optional[List[str]] = None,
    is_system: bool = False,
) -> Role:
    """
    Raises:
        DuplicateRecordError: a role with this name exists
        InvalidOperationError: a permission name is not part of the matrix
    """
    name = name.strip()
    if _name_taken(db, name):
        raise DuplicateRecordError("role name", name)

    role = Role(name=name, display_name=display_name, description=description, is_system=is_system)
    role.permissions = resolve_permissions(db, permissions or [])
    db.add(role)
    db.flush()
    logfire.info("Role created", role_id=str(role.id), name=role.name, permissions=len(role.permissions))
    return role


def update_role(db: Session, role: Role, **changes) -> Role:
    """
    Partial update. Accepted keys: name, display_name, description, permissions.

    Raises:
        InvalidOperationError: renaming a system role, or invalid permissions
        DuplicateRecordError: new name already in use
    """
    new_name = (changes.get("name") or "").strip()
    if new_name and new_name != role.name:
        if role.is_system:
            raise InvalidOperationError("System roles cannot be renamed")
        if _name_taken(db, new_name, exclude_id=role.id):
            raise DuplicateRecordError("role name", new_name)
        role.name = new_name

    for field in ("display_name", "description"):
        if field in changes:
            setattr(role, field, changes[field])

    if changes.get("permissions") is not None:
        role.permissions = resolve_permissions(db, changes["permissions"])

    db.flush()
    logfire.info("Role updated", role_id=str(role.id), fields=sorted(changes))
    return role


def delete_role(db: Session, role: Role) -> None:
    """
    Soft delete a role, detaching its users and permissions.

    Raises:
        InvalidOperationError: the role is a system role
    """
    if role.is_system:
        raise InvalidOperationError("System roles cannot be deleted")
    role.users = []
    role.permissions = []
    role.deleted_at = datetime.now(timezone.utc)
    db.flush()
    logfire.info("Role deleted", role_id=str(role.id), name=role.name)


def ensure_system_roles(db: Session) -> Role:
    """
    Make sure every matrix permission and the super admin role exist.

    Returns:
        The super admin role
    """
    sync_permissions(db)
    role = db.query(Role).filter(Role.name == settings.super_admin_role).first()
    if role is None:
        role = Role(
            name=settings.super_admin_role,
            display_name="Super administrator",
            description="Bypasses every permission check",
            is_system=True,
        )
        db.add(role)
        db.flush()
        logfire.info("System role created", name=role.name)
    return role
