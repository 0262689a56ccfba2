"""Login and bearer-token lookup."""

from typing import Optional, Tuple

import logfire
from sqlalchemy.orm import Session

from models.user import User
from services.exceptions import PermissionDeniedError
from services.security import hash_token, issue_token, verify_password
from services.users import find_by_login


class AuthenticationError(PermissionDeniedError):
    """Wrong credentials or inactive account."""


def login(db: Session, identifier: str, password: str) -> Tuple[User, str]:
    """
    Check credentials and issue a fresh API token. Issuing replaces the previous token.

    Returns:
        Tuple of (user, plain token)

    Raises:
        AuthenticationError: unknown identifier, wrong password or inactive account
    """
    user = find_by_login(db, identifier)
    if user is None or not verify_password(password, user.password_hash):
        logfire.warning("Login failed", identifier=identifier)
        raise AuthenticationError(message="Invalid credentials")
    if not user.is_active:
        logfire.warning("Login refused for inactive user", user_id=str(user.id))
        raise AuthenticationError(message="This account is not active")

    token, token_hash = issue_token()
    user.api_token_hash = token_hash
    db.flush()
    logfire.info("User logged in", user_id=str(user.id))
    return user, token


def user_for_token(db: Session, token: str) -> Optional[User]:
    """Return the active, non-deleted user owning this token, if any."""
    return (
        db.query(User)
        .filter(
            User.api_token_hash == hash_token(token),
            User.is_active.is_(True),
            User.deleted_at.is_(None),
        )
        .first()
    )


def logout(db: Session, user: User) -> None:
    user.api_token_hash = None
    db.flush()
