"""Mail settings schemas. Passwords are write-only."""

import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from models.mail_settings import MailScope


class MailSettingsInput(BaseModel):
    scope: MailScope = MailScope.APP
    owner_id: Optional[uuid.UUID] = None
    provider: str = Field(default="smtp", max_length=50)
    host: Optional[str] = Field(default=None, max_length=255)
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    username: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, description="Leave empty to keep the stored password")
    encryption: Optional[str] = Field(default=None, max_length=10)
    from_address: Optional[EmailStr] = None
    from_name: Optional[str] = Field(default=None, max_length=255)
    is_active: bool = True


class MailSettingsResponse(BaseModel):
    id: uuid.UUID
    scope: str
    owner_id: Optional[uuid.UUID]
    provider: str
    host: Optional[str]
    port: Optional[int]
    username: Optional[str]
    has_password: bool
    encryption: Optional[str]
    from_address: Optional[str]
    from_name: Optional[str]
    is_active: bool


class ResolvedMailCredentials(BaseModel):
    provider: str
    host: Optional[str]
    port: Optional[int]
    username: Optional[str]
    has_password: bool
    encryption: Optional[str]
    from_address: Optional[str]
    from_name: Optional[str]
    source: str
