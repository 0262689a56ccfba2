"""Login, logout and current-user endpoints."""

import logfire
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from api.dependencies import get_current_user
from api.errors import http_error
from database import get_db
from models.user import User
from schemas.auth import CurrentUser, LoginRequest, TokenResponse
from services import auth as auth_service
from services.exceptions import AdminError


router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def current_user_payload(user: User) -> CurrentUser:
    return CurrentUser(
        id=user.id,
        name=user.name,
        username=user.username,
        email=user.email,
        roles=user.role_names,
        permissions=sorted(user.permission_names()),
        is_super_admin=user.is_super_admin,
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Exchange a username or email and password for a bearer token.

    Args:
        credentials: Login identifier and password
        db: Database session (injected by dependency)

    Returns:
        TokenResponse: The plain token (shown once) and the user's roles and permissions

    Raises:
        HTTPException 403: If the credentials are wrong or the account is inactive
    """
    with logfire.span("api.login"):
        try:
            user, token = auth_service.login(db, credentials.login, credentials.password)
            db.commit()
        except AdminError as e:
            db.rollback()
            raise http_error(e)

        return TokenResponse(access_token=token, user=current_user_payload(user))


@router.get("/me", response_model=CurrentUser)
async def me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user with resolved permissions."""
    return current_user_payload(current_user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Revoke the current token."""
    try:
        auth_service.logout(db, current_user)
        db.commit()
    except Exception as e:
        db.rollback()
        logfire.error("Logout failed", user_id=str(current_user.id), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to log out",
        )
