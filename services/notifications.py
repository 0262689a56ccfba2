"""
Notifications: toast payloads and persisted in-app notifications.

NotificationBuilder is the single way to produce either. A toast is always
returned to the caller; persist() additionally stores a Notification row
for each recipient.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
from uuid import UUID

import logfire
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config import settings
from models.notification import Notification, NotificationLevel
from models.team import Team
from models.user import User
from services.exceptions import InvalidOperationError, NotFoundError

TOAST_POSITIONS = ("top-right", "top-left", "bottom-right", "bottom-left")


class ToastPayload(BaseModel):
    title: str
    subtitle: Optional[str] = None
    content: Optional[str] = None
    type: NotificationLevel = NotificationLevel.SUCCESS
    position: str = "top-right"
    link: Optional[str] = None


class NotificationBuilder:
    """
    Fluent builder for toasts and stored notifications.

    Usage:
        toast = (
            NotificationBuilder.make("User created")
            .subtitle(user.name)
            .to_user(admin)
            .persist()
            .send(db)
        )
    """

    def __init__(self, title: Optional[str] = None):
        self._title = title
        self._subtitle: Optional[str] = None
        self._content: Optional[str] = None
        self._level = NotificationLevel.SUCCESS
        self._position = "top-right"
        self._link: Optional[str] = None
        self._type = "general"
        self._persist = False
        self._user_ids: List[UUID] = []
        self._team_id: Optional[UUID] = None

    @classmethod
    def make(cls, title: Optional[str] = None) -> "NotificationBuilder":
        return cls(title)

    def title(self, title: str) -> "NotificationBuilder":
        self._title = title
        return self

    def subtitle(self, subtitle: Optional[str]) -> "NotificationBuilder":
        self._subtitle = subtitle
        return self

    def content(self, content: str) -> "NotificationBuilder":
        self._content = content
        return self

    def level(self, level) -> "NotificationBuilder":
        self._level = NotificationLevel(level)
        return self

    def success(self) -> "NotificationBuilder":
        return self.level(NotificationLevel.SUCCESS)

    def info(self) -> "NotificationBuilder":
        return self.level(NotificationLevel.INFO)

    def warning(self) -> "NotificationBuilder":
        return self.level(NotificationLevel.WARNING)

    def error(self) -> "NotificationBuilder":
        return self.level(NotificationLevel.ERROR)

    def position(self, position: str) -> "NotificationBuilder":
        if position not in TOAST_POSITIONS:
            raise ValueError(f"Unknown toast position '{position}'")
        self._position = position
        return self

    def link(self, link: str) -> "NotificationBuilder":
        self._link = link
        return self

    def category(self, notification_type: str) -> "NotificationBuilder":
        self._type = notification_type
        return self

    def persist(self) -> "NotificationBuilder":
        self._persist = True
        return self

    def to_user(self, user) -> "NotificationBuilder":
        self._user_ids = [user.id if isinstance(user, User) else user]
        self._team_id = None
        return self

    def to_team(self, team) -> "NotificationBuilder":
        self._team_id = team.id if isinstance(team, Team) else team
        self._user_ids = []
        return self

    def toast(self) -> dict:
        if self._title is None or not self._title.strip():
            raise InvalidOperationError("Notification title is required.")
        return ToastPayload(
            title=self._title,
            subtitle=self._subtitle,
            content=self._content,
            type=self._level,
            position=self._position,
            link=self._link,
        ).model_dump(mode="json")

    def _recipients(self, db: Session) -> List[UUID]:
        if self._team_id is not None:
            team = db.query(Team).filter(Team.id == self._team_id).first()
            return [member.id for member in team.users] if team else []
        return list(self._user_ids)

    def send(self, db: Optional[Session] = None) -> dict:
        """
        Build the toast and, when persist() was called, store notifications.

        Does not commit.

        Raises:
            InvalidOperationError: title is missing, or persist() without a session or recipient
        """
        toast = self.toast()
        if not self._persist:
            return toast

        if db is None:
            raise InvalidOperationError("A database session is required to persist notifications")
        recipients = self._recipients(db)
        if not recipients:
            raise InvalidOperationError("Persisted notifications need a recipient")

        for user_id in recipients:
            db.add(Notification(
                user_id=user_id,
                type=self._type,
                title=self._title,
                subtitle=self._subtitle,
                content=self._content,
                link=self._link,
                level=self._level.value,
            ))
        db.flush()
        logfire.info("Notifications stored", recipients=len(recipients), level=self._level.value)
        return toast


# ============================================================================
# Stored notification operations
# ============================================================================

def _visible(db: Session, user: User):
    return db.query(Notification).filter(
        Notification.user_id == user.id,
        Notification.deleted_at.is_(None),
    )


def list_notifications(
    db: Session,
    user: User,
    unread_only: bool = False,
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[Notification], int]:
    """Newest first. Returns (items, total)."""
    query = _visible(db, user)
    if unread_only:
        query = query.filter(Notification.read_at.is_(None))
    total = query.count()
    items = query.order_by(Notification.created_at.desc()).offset(offset).limit(limit).all()
    return items, total


def unread_count(db: Session, user: User) -> int:
    return _visible(db, user).filter(Notification.read_at.is_(None)).count()


def get_notification(db: Session, user: User, notification_id: UUID) -> Notification:
    notification = _visible(db, user).filter(Notification.id == notification_id).first()
    if notification is None:
        raise NotFoundError("Notification", notification_id)
    return notification


def mark_read(db: Session, user: User, notification_id: UUID) -> Notification:
    notification = get_notification(db, user, notification_id)
    if notification.read_at is None:
        notification.read_at = datetime.now(timezone.utc)
        db.flush()
    return notification


def mark_all_read(db: Session, user: User) -> int:
    """Returns how many notifications were marked."""
    now = datetime.now(timezone.utc)
    unread = _visible(db, user).filter(Notification.read_at.is_(None)).all()
    for notification in unread:
        notification.read_at = now
    db.flush()
    return len(unread)


def delete_notification(db: Session, user: User, notification_id: UUID) -> None:
    notification = get_notification(db, user, notification_id)
    notification.deleted_at = datetime.now(timezone.utc)
    db.flush()


def prune_read(db: Session, older_than_days: Optional[int] = None) -> int:
    """
    Permanently delete notifications read more than `older_than_days` ago.

    Returns:
        Number of rows deleted
    """
    days = settings.notifications_prune_after_days if older_than_days is None else older_than_days
    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    deleted = (
        db.query(Notification)
        .filter(Notification.read_at.isnot(None), Notification.read_at < cutoff)
        .delete(synchronize_session=False)
    )
    logfire.info("Read notifications pruned", deleted=deleted, older_than_days=days)
    return deleted
