"""Role, team and permission matrix schemas."""

import uuid
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    permissions: List[str] = Field(default_factory=list, description="Names like 'edit users'")


class RoleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    display_name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    permissions: Optional[List[str]] = None


class RoleResponse(BaseModel):
    id: uuid.UUID
    name: str
    display_name: Optional[str]
    description: Optional[str]
    is_system: bool
    permissions: List[str]


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    members: List[str] = Field(default_factory=list, description="Usernames")


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    display_name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    members: Optional[List[str]] = None


class TeamResponse(BaseModel):
    id: uuid.UUID
    name: str
    display_name: Optional[str]
    description: Optional[str]
    member_count: int


class PermissionMatrixRow(BaseModel):
    entity: str
    label: str
    actions: Dict[str, bool]


class PermissionMatrixResponse(BaseModel):
    """Actions are the matrix columns; a False cell means the entity does not support the action."""

    actions: List[str]
    rows: List[PermissionMatrixRow]
