"""
User management: creation, updates, activation and soft deletion.

Functions flush but never commit; routes own the transaction.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional
from uuid import UUID

import logfire
from sqlalchemy import func
from sqlalchemy.orm import Session

from models.role import Permission, Role
from models.team import Team
from models.user import User
from services.exceptions import (
    DuplicateRecordError,
    InvalidOperationError,
    NotFoundError,
)
from services.permission_matrix import permission_matrix
from services.security import hash_password
from utils.text import slugify


# ============================================================================
# Lookups
# ============================================================================

def get_user(db: Session, user_id: UUID) -> User:
    """
    Raises:
        NotFoundError: no live user with this id
    """
    user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def find_by_login(db: Session, identifier: str) -> Optional[User]:
    """Find a live user by username or email (case-insensitive)."""
    lowered = identifier.strip().lower()
    return (
        db.query(User)
        .filter(
            User.deleted_at.is_(None),
            (func.lower(User.username) == lowered) | (func.lower(User.email) == lowered),
        )
        .first()
    )


def _username_taken(db: Session, username: str, exclude_id: Optional[UUID] = None) -> bool:
    query = db.query(User.id).filter(func.lower(User.username) == username.lower())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _email_taken(db: Session, email: str, exclude_id: Optional[UUID] = None) -> bool:
    query = db.query(User.id).filter(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def generate_username(db: Session, email: Optional[str] = None, name: Optional[str] = None) -> str:
    """
    Derive a unique username.

    The email local part without dots is preferred ("john.doe@x.io" gives
    "johndoe"), then the slugified name ("John Doe" gives "john-doe"), then
    "user". A numeric suffix is appended until the name is free.
    """
    base = ""
    if email and "@" in email:
        base = slugify(email.split("@", 1)[0].replace(".", ""))
    if not base and name:
        base = slugify(name)
    if not base:
        base = "user"

    candidate = base
    suffix = 1
    while _username_taken(db, candidate):
        candidate = f"{base}{suffix}"
        suffix += 1
    return candidate


# ============================================================================
# Relationship syncing
# ============================================================================

def _load_by_names(db: Session, model, names: Iterable[str], label: str) -> list:
    names = list(dict.fromkeys(names))
    if not names:
        return []
    query = db.query(model).filter(model.name.in_(names))
    if hasattr(model, "deleted_at"):
        query = query.filter(model.deleted_at.is_(None))
    records = query.all()
    missing = set(names) - {record.name for record in records}
    if missing:
        raise InvalidOperationError(f"Unknown {label}: {', '.join(sorted(missing))}")
    return records


def resolve_permissions(db: Session, names: Iterable[str]) -> List[Permission]:
    """
    Load permissions by name, rejecting names outside the matrix.

    Raises:
        InvalidOperationError: a name is not a valid matrix permission or has no row
    """
    names = list(names)
    invalid = [name for name in names if not permission_matrix.is_valid(name)]
    if invalid:
        raise InvalidOperationError(f"Invalid permissions: {', '.join(sorted(invalid))}")
    return _load_by_names(db, Permission, names, "permissions")


def sync_roles(db: Session, user: User, role_names: Iterable[str]) -> None:
    user.roles = _load_by_names(db, Role, role_names, "roles")


def sync_teams(db: Session, user: User, team_names: Iterable[str]) -> None:
    user.teams = _load_by_names(db, Team, team_names, "teams")


def sync_direct_permissions(db: Session, user: User, permission_names: Iterable[str]) -> None:
    user.permissions = resolve_permissions(db, permission_names)


# ============================================================================
# Mutations
# ============================================================================

def create_user(
    db: Session,
    *,
    name: str,
    username: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
    is_active: bool = False,
    timezone_name: Optional[str] = None,
    locale: Optional[str] = None,
    roles: Optional[List[str]] = None,
    teams: Optional[List[str]] = None,
    permissions: Optional[List[str]] = None,
    created_by: Optional[User] = None,
) -> User:
    """
    Create a user. Accounts are inactive unless is_active is passed.

    Raises:
        DuplicateRecordError: username or email already in use
        InvalidOperationError: unknown role, team or permission
    """
    with logfire.span("users.create", created_by=str(created_by.id) if created_by else None):
        email = email.strip().lower() if email else None
        if email and _email_taken(db, email):
            raise DuplicateRecordError("email", email)

        username = username.strip() if username else None
        if username:
            if _username_taken(db, username):
                raise DuplicateRecordError("username", username)
        else:
            username = generate_username(db, email=email, name=name)

        preferences = {}
        if timezone_name:
            preferences["timezone"] = timezone_name
        if locale:
            preferences["locale"] = locale

        user = User(
            name=name.strip(),
            username=username,
            email=email,
            password_hash=hash_password(password) if password else None,
            is_active=is_active,
            frontend_preferences=preferences,
            datatable_preferences={},
            created_by_user_id=created_by.id if created_by else None,
        )
        db.add(user)

        if roles:
            sync_roles(db, user, roles)
        if teams:
            sync_teams(db, user, teams)
        if permissions:
            sync_direct_permissions(db, user, permissions)

        db.flush()
        logfire.info("User created", user_id=str(user.id), username=user.username)
        return user


def update_user(db: Session, user: User, acting_user: Optional[User] = None, **changes) -> User:
    """
    Apply a partial update. Keys that are absent are left untouched.

    Accepted keys: name, username, email, password, is_active, timezone_name,
    locale, roles, teams, permissions. Passwords are only changed when the
    acting user is a super admin; otherwise the key is ignored.

    Raises:
        DuplicateRecordError: new username or email already in use
        InvalidOperationError: self-deactivation, or unknown role/team/permission
    """
    if "username" in changes and changes["username"]:
        username = changes["username"].strip()
        if username != user.username and _username_taken(db, username, exclude_id=user.id):
            raise DuplicateRecordError("username", username)
        user.username = username

    if "email" in changes:
        email = changes["email"].strip().lower() if changes["email"] else None
        if email and email != user.email and _email_taken(db, email, exclude_id=user.id):
            raise DuplicateRecordError("email", email)
        if email != user.email:
            user.email = email
            user.email_verified_at = None

    if changes.get("name"):
        user.name = changes["name"].strip()

    if changes.get("password"):
        if acting_user is not None and acting_user.is_super_admin:
            user.password_hash = hash_password(changes["password"])
        else:
            logfire.warning("Ignoring password change from non super admin", user_id=str(user.id))

    if changes.get("is_active") is not None:
        if changes["is_active"]:
            activate_user(db, user)
        else:
            deactivate_user(db, user, acting_user)

    if changes.get("timezone_name") or changes.get("locale"):
        preferences = dict(user.frontend_preferences or {})
        if changes.get("timezone_name"):
            preferences["timezone"] = changes["timezone_name"]
        if changes.get("locale"):
            preferences["locale"] = changes["locale"]
        user.frontend_preferences = preferences

    if changes.get("roles") is not None:
        sync_roles(db, user, changes["roles"])
    if changes.get("teams") is not None:
        sync_teams(db, user, changes["teams"])
    if changes.get("permissions") is not None:
        sync_direct_permissions(db, user, changes["permissions"])

    db.flush()
    logfire.info("User updated", user_id=str(user.id), fields=sorted(changes))
    return user


def activate_user(db: Session, user: User) -> User:
    if not user.is_active:
        user.is_active = True
        db.flush()
        logfire.info("User activated", user_id=str(user.id))
    return user


def deactivate_user(db: Session, user: User, acting_user: Optional[User] = None) -> User:
    """
    Raises:
        InvalidOperationError: the acting user tries to deactivate themselves
    """
    if acting_user is not None and acting_user.id == user.id:
        raise InvalidOperationError("You cannot deactivate your own account")
    if user.is_active:
        user.is_active = False
        user.api_token_hash = None
        db.flush()
        logfire.info("User deactivated", user_id=str(user.id))
    return user


def delete_user(db: Session, user: User, acting_user: Optional[User] = None) -> None:
    """
    Soft delete a user and revoke their token.

    Raises:
        InvalidOperationError: the acting user tries to delete themselves
    """
    if acting_user is not None and acting_user.id == user.id:
        raise InvalidOperationError("You cannot delete your own account")
    user.deleted_at = datetime.now(timezone.utc)
    user.is_active = False
    user.api_token_hash = None
    db.flush()
    logfire.info("User deleted", user_id=str(user.id))
