"""
Scoped outgoing-mail settings and credential resolution.

Resolution order for a user: their own active settings, then the first
active settings of one of their teams, then the app-wide settings, then
the environment defaults from config.
"""

from dataclasses import asdict, dataclass
from typing import List, Optional
from uuid import UUID

import logfire
from sqlalchemy.orm import Session

from config import settings
from models.mail_settings import MailScope, MailSettings
from models.team import Team
from models.user import User
from services.exceptions import InvalidOperationError, NotFoundError
from services.permission_matrix import PermissionAction, PermissionEntity, PermissionMatrix

# Users need this permission for their own settings to take effect
CONFIGURE_PERMISSION = PermissionMatrix.permission_name(PermissionEntity.MAIL_SETTINGS, PermissionAction.CONFIGURE)

SETTING_FIELDS = (
    "provider",
    "host",
    "port",
    "username",
    "password",
    "encryption",
    "from_address",
    "from_name",
    "is_active",
)


@dataclass
class MailCredentials:
    provider: str
    host: Optional[str]
    port: Optional[int]
    username: Optional[str]
    password: Optional[str]
    encryption: Optional[str]
    from_address: Optional[str]
    from_name: Optional[str]
    source: str

    @classmethod
    def from_settings(cls, record: MailSettings) -> "MailCredentials":
        return cls(
            provider=record.provider,
            host=record.host,
            port=record.port,
            username=record.username,
            password=record.password,
            encryption=record.encryption,
            from_address=record.from_address,
            from_name=record.from_name,
            source=record.scope,
        )

    @classmethod
    def from_environment(cls) -> "MailCredentials":
        return cls(
            provider=settings.mail_provider,
            host=settings.mail_host,
            port=settings.mail_port,
            username=settings.mail_username or None,
            password=settings.mail_password or None,
            encryption=settings.mail_encryption,
            from_address=settings.mail_from_address,
            from_name=settings.mail_from_name,
            source="environment",
        )

    def public_dict(self) -> dict:
        """Everything except the password."""
        data = asdict(self)
        data["has_password"] = bool(data.pop("password"))
        return data


def _query(db: Session, scope: str, owner_id: Optional[UUID]):
    query = db.query(MailSettings).filter(MailSettings.scope == scope)
    if owner_id is None:
        return query.filter(MailSettings.owner_id.is_(None))
    return query.filter(MailSettings.owner_id == owner_id)


def _check_scope(scope: str, owner_id: Optional[UUID]) -> None:
    valid = {item.value for item in MailScope}
    if scope not in valid:
        raise InvalidOperationError(f"Scope must be one of {sorted(valid)}")
    if scope == MailScope.APP.value and owner_id is not None:
        raise InvalidOperationError("App mail settings cannot have an owner")
    if scope != MailScope.APP.value and owner_id is None:
        raise InvalidOperationError(f"{scope} mail settings need an owner_id")


def get_settings(db: Session, scope: str, owner_id: Optional[UUID] = None) -> MailSettings:
    _check_scope(scope, owner_id)
    record = _query(db, scope, owner_id).first()
    if record is None:
        raise NotFoundError("Mail settings", f"{scope}:{owner_id}" if owner_id else scope)
    return record


def list_settings(db: Session) -> List[MailSettings]:
    return db.query(MailSettings).order_by(MailSettings.scope, MailSettings.created_at).all()


def save_settings(db: Session, scope: str, owner_id: Optional[UUID] = None, **values) -> MailSettings:
    """
    Create or update the settings for one scope.

    A password of None or "" keeps the stored password.

    Raises:
        InvalidOperationError: bad scope/owner combination
        NotFoundError: the owning team or user does not exist
    """
    _check_scope(scope, owner_id)
    if scope == MailScope.TEAM.value and db.query(Team.id).filter(Team.id == owner_id).first() is None:
        raise NotFoundError("Team", owner_id)
    if scope == MailScope.USER.value and db.query(User.id).filter(User.id == owner_id).first() is None:
        raise NotFoundError("User", owner_id)

    record = _query(db, scope, owner_id).first()
    if record is None:
        record = MailSettings(scope=scope, owner_id=owner_id)
        db.add(record)

    for field in SETTING_FIELDS:
        if field not in values:
            continue
        if field == "password" and not values[field]:
            continue
        if values[field] is not None:
            setattr(record, field, values[field])

    db.flush()
    logfire.info("Mail settings saved", scope=scope, owner_id=str(owner_id) if owner_id else None)
    return record


def delete_settings(db: Session, scope: str, owner_id: Optional[UUID] = None) -> None:
    record = get_settings(db, scope, owner_id)
    db.delete(record)
    db.flush()
    logfire.info("Mail settings deleted", scope=scope, owner_id=str(owner_id) if owner_id else None)


class MailCredentialResolver:
    """Pick the mail credentials that apply to a user."""

    def __init__(self, db: Session):
        self.db = db

    def _active(self, scope: str, owner_id: Optional[UUID]) -> Optional[MailSettings]:
        return _query(self.db, scope, owner_id).filter(MailSettings.is_active.is_(True)).first()

    def resolve(self, user: Optional[User] = None) -> MailCredentials:
        if user is not None:
            if user.has_permission(CONFIGURE_PERMISSION):
                record = self._active(MailScope.USER.value, user.id)
                if record is not None:
                    return MailCredentials.from_settings(record)

            for team in sorted(user.teams, key=lambda t: t.name):
                record = self._active(MailScope.TEAM.value, team.id)
                if record is not None:
                    return MailCredentials.from_settings(record)

        record = self._active(MailScope.APP.value, None)
        if record is not None:
            return MailCredentials.from_settings(record)

        return MailCredentials.from_environment()
