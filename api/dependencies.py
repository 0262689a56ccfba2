"""Authentication and authorization dependencies for bearer-token validation."""

from typing import Annotated

import logfire
from fastapi import Depends, HTTPException, Query, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from config.settings import settings
from database import get_db
from models.user import User
from services.auth import user_for_token


# HTTP Bearer security scheme (checks for "Authorization: Bearer ..." header).
# auto_error is off so a missing header is a 401 rather than FastAPI's 403.
security_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Security(security_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to an active user.

    Raises:
        HTTPException: 401 if the header is missing or the token matches no active user
    """
    if creds is None or not creds.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = user_for_token(db, creds.credentials)
    if user is None:
        logfire.info("Rejected bearer token", token_prefix=creds.credentials[:6])
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def require_permission(permission: str):
    """
    Dependency factory guarding a route with a matrix permission.

    Usage:
        @router.get("/", dependencies=[Depends(require_permission("view users"))])
    """

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not current_user.has_permission(permission):
            logfire.warning("Permission denied", user_id=str(current_user.id), permission=permission)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission}",
            )
        return current_user

    return dependency


def pagination_params(
    limit: int = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0)
) -> dict:
    """Reusable pagination with configurable defaults and max limits from settings."""
    # Use configured defaults and enforce maximum
    if limit is None:
        limit = settings.pagination_default_limit
    limit = min(limit, settings.pagination_max_limit)

    return {"limit": limit, "offset": offset}


# Type aliases for dependency injection
PaginationParams = Annotated[dict, Depends(pagination_params)]
CurrentUser = Annotated[User, Depends(get_current_user)]
