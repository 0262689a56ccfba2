"""Notification schemas."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: uuid.UUID
    type: str
    title: str
    subtitle: Optional[str]
    content: Optional[str]
    link: Optional[str]
    level: str
    read_at: Optional[datetime]
    created_at: Optional[datetime]


class NotificationList(BaseModel):
    items: List[NotificationResponse]
    total: int
    unread: int
    limit: int
    offset: int

