"""User management schemas."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserCreate(BaseModel):
    """
    Request body for POST /api/users.

    The username is generated from the email or name when omitted.
    Roles, teams and permissions are given by name.
    """

    name: str = Field(..., min_length=1, max_length=255)
    username: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8, max_length=255)
    is_active: bool = False
    timezone: Optional[str] = None
    locale: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    teams: List[str] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Jane Doe",
                "email": "jane.doe@example.com",
                "password": "a long password",
                "roles": ["editor"],
                "teams": ["support"],
            }
        }
    )


class UserUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    username: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8, max_length=255)
    is_active: Optional[bool] = None
    timezone: Optional[str] = None
    locale: Optional[str] = None
    roles: Optional[List[str]] = None
    teams: Optional[List[str]] = None
    permissions: Optional[List[str]] = None


class UserResponse(BaseModel):
    id: uuid.UUID
    name: str
    username: str
    email: Optional[str]
    is_active: bool
    email_verified_at: Optional[datetime]
    roles: List[str]
    teams: List[str]
    created_at: Optional[datetime]
