"""
Authentication schemas.

Login exchanges a username or email plus password for an opaque API token,
sent back as "Authorization: Bearer <token>".
"""

import uuid
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    login: str = Field(..., min_length=1, max_length=255, description="Username or email")
    password: str = Field(..., min_length=1, max_length=255)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "login": "admin",
                "password": "correct horse battery staple",
            }
        }
    )


class CurrentUser(BaseModel):
    """The authenticated user with resolved roles and permissions."""

    id: uuid.UUID
    name: str
    username: str
    email: str | None
    roles: List[str]
    permissions: List[str]
    is_super_admin: bool


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: CurrentUser


class AuthError(BaseModel):
    """
    Standardized error response for authentication failures.
    """

    detail: str
    toast: dict | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "detail": "Invalid credentials",
                "toast": {"title": "Invalid credentials", "type": "error"},
            }
        }
    )
