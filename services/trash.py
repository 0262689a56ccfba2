"""
Trash: restoring and permanently deleting soft-deleted records.

Only users, roles and teams are soft deleted. Functions flush but never
commit; routes own the transaction.
"""

from typing import Dict, List, Optional

import logfire
from sqlalchemy.orm import Session

from models.mail_settings import MailScope, MailSettings
from models.role import Role
from models.team import Team
from models.user import User
from services.exceptions import InvalidOperationError
from services.permission_matrix import PermissionAction, PermissionEntity, PermissionMatrix


class TrashEntity:
    """One trash-manageable entity and the permissions that gate it."""

    def __init__(self, entity: str, model, label_singular: str, search_fields: List[str]):
        self.entity = entity
        self.model = model
        self.label_singular = label_singular
        self.search_fields = search_fields

    @property
    def label_plural(self) -> str:
        return PermissionEntity.label(self.entity)

    @property
    def view_permission(self) -> str:
        return PermissionMatrix.permission_name(self.entity, PermissionAction.VIEW)

    @property
    def restore_permission(self) -> str:
        return PermissionMatrix.permission_name(self.entity, PermissionAction.RESTORE)

    @property
    def force_delete_permission(self) -> str:
        return PermissionMatrix.permission_name(self.entity, PermissionAction.FORCE_DELETE)


TRASH_ENTITIES: Dict[str, TrashEntity] = {
    PermissionEntity.USERS: TrashEntity(PermissionEntity.USERS, User, "user", ["name", "email"]),
    PermissionEntity.ROLES: TrashEntity(PermissionEntity.ROLES, Role, "role", ["name"]),
    PermissionEntity.TEAMS: TrashEntity(PermissionEntity.TEAMS, Team, "team", ["name"]),
}


def get_trash_entity(entity: str) -> Optional[TrashEntity]:
    return TRASH_ENTITIES.get(entity)


def trashed(db: Session, model):
    return db.query(model).filter(model.deleted_at.isnot(None))


def _ensure_trashed(record) -> None:
    if record.deleted_at is None:
        raise InvalidOperationError(f"{record.name} is not in the trash")


def restore(db: Session, record) -> None:
    """
    Bring a soft-deleted record back.

    Restored users stay inactive. Restored roles and teams come back without
    the users and permissions they lost when deleted.

    Raises:
        InvalidOperationError: the record is not deleted
    """
    _ensure_trashed(record)
    record.deleted_at = None
    db.flush()
    logfire.info("Record restored", model=type(record).__name__, record_id=str(record.id))


def force_delete(db: Session, record) -> None:
    """
    Permanently delete a soft-deleted record with its notifications and
    scoped mail settings.

    Raises:
        InvalidOperationError: the record is not deleted
    """
    _ensure_trashed(record)
    if isinstance(record, User):
        for notification in list(record.notifications):
            db.delete(notification)
        _delete_mail_settings(db, MailScope.USER.value, record)
    elif isinstance(record, Team):
        _delete_mail_settings(db, MailScope.TEAM.value, record)

    record_id = str(record.id)
    db.delete(record)
    db.flush()
    logfire.info("Record permanently deleted", model=type(record).__name__, record_id=record_id)


def _delete_mail_settings(db: Session, scope: str, owner) -> None:
    db.query(MailSettings).filter(
        MailSettings.scope == scope,
        MailSettings.owner_id == owner.id,
    ).delete(synchronize_session=False)
