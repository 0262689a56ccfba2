"""
Permission matrix: which actions each entity supports.

Permission names are "<action> <entity>", e.g. "edit users". The matrix is
the single source of truth for valid names; sync_permissions() makes sure
a Permission row exists for each of them.
"""

from typing import Dict, List, Optional

import logfire
from sqlalchemy.orm import Session

from models.role import Permission


class PermissionAction:
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    EXPORT = "export"
    ACTIVATE = "activate"
    PUBLISH = "publish"
    CONFIGURE = "configure"
    RESTORE = "restore"
    FORCE_DELETE = "force_delete"


class PermissionEntity:
    USERS = "users"
    ROLES = "roles"
    TEAMS = "teams"
    EMAIL_TEMPLATES = "email_templates"
    MAIL_SETTINGS = "mail_settings"
    NOTIFICATIONS = "notifications"

    LABELS = {
        USERS: "Users",
        ROLES: "Roles",
        TEAMS: "Teams",
        EMAIL_TEMPLATES: "Email templates",
        MAIL_SETTINGS: "Mail settings",
        NOTIFICATIONS: "Notifications",
    }

    @classmethod
    def label(cls, entity: str) -> str:
        return cls.LABELS.get(entity, entity.replace("_", " ").capitalize())


_CRUD = [
    PermissionAction.VIEW,
    PermissionAction.CREATE,
    PermissionAction.EDIT,
    PermissionAction.DELETE,
]

# Soft-deleted records of these entities are listed in the trash tables
_TRASH = [PermissionAction.RESTORE, PermissionAction.FORCE_DELETE]

DEFAULT_MATRIX: Dict[str, List[str]] = {
    PermissionEntity.USERS: _CRUD + [PermissionAction.ACTIVATE, PermissionAction.EXPORT] + _TRASH,
    PermissionEntity.ROLES: _CRUD + _TRASH,
    PermissionEntity.TEAMS: _CRUD + _TRASH,
    PermissionEntity.EMAIL_TEMPLATES: _CRUD + [PermissionAction.PUBLISH],
    PermissionEntity.MAIL_SETTINGS: [PermissionAction.VIEW, PermissionAction.CONFIGURE],
    PermissionEntity.NOTIFICATIONS: [PermissionAction.VIEW, PermissionAction.DELETE],
}


class PermissionMatrix:
    """Entity to supported-actions map with naming helpers."""

    def __init__(self, matrix: Optional[Dict[str, List[str]]] = None):
        self._matrix = {entity: list(actions) for entity, actions in (matrix or DEFAULT_MATRIX).items()}

    @property
    def matrix(self) -> Dict[str, List[str]]:
        return {entity: list(actions) for entity, actions in self._matrix.items()}

    def entities(self) -> List[str]:
        return list(self._matrix)

    def all_actions(self) -> List[str]:
        """Every action used by any entity, first-seen order, no duplicates."""
        actions: List[str] = []
        for entity_actions in self._matrix.values():
            for action in entity_actions:
                if action not in actions:
                    actions.append(action)
        return actions

    def actions_for(self, entity: str) -> List[str]:
        return list(self._matrix.get(entity, []))

    def supports(self, entity: str, action: str) -> bool:
        return action in self._matrix.get(entity, [])

    @staticmethod
    def permission_name(entity: str, action: str) -> str:
        return f"{action} {entity}"

    def all_permission_names(self) -> List[str]:
        return [
            self.permission_name(entity, action)
            for entity, actions in self._matrix.items()
            for action in actions
        ]

    def permissions_by_entity(self) -> Dict[str, List[str]]:
        return {
            entity: [self.permission_name(entity, action) for action in actions]
            for entity, actions in self._matrix.items()
        }

    def entities_for_action(self, action: str) -> List[str]:
        return [entity for entity, actions in self._matrix.items() if action in actions]

    @staticmethod
    def parse(name: str) -> Optional[Dict[str, str]]:
        """
        Split a permission name into its action and entity.

        Returns None when the name has no space separator.
        """
        parts = name.split(" ", 1)
        if len(parts) != 2 or not parts[0] or not parts[1]:
            return None
        return {"action": parts[0], "entity": parts[1]}

    def is_valid(self, name: str) -> bool:
        parsed = self.parse(name)
        return parsed is not None and self.supports(parsed["entity"], parsed["action"])

    def matrix_for_ui(self) -> List[dict]:
        """One row per entity with a boolean for every known action."""
        all_actions = self.all_actions()
        return [
            {
                "entity": entity,
                "label": PermissionEntity.label(entity),
                "actions": {action: action in supported for action in all_actions},
            }
            for entity, supported in self._matrix.items()
        ]


permission_matrix = PermissionMatrix()


def sync_permissions(db: Session, matrix: PermissionMatrix = permission_matrix) -> List[Permission]:
    """
    Create a Permission row for every matrix name that does not have one.

    Does not commit; the caller owns the transaction.

    Returns:
        List of newly created permissions
    """
    existing = {name for (name,) in db.query(Permission.name).all()}
    created = []
    for name in matrix.all_permission_names():
        if name in existing:
            continue
        parsed = matrix.parse(name)
        permission = Permission(
            name=name,
            display_name=f"{parsed['action'].capitalize()} {PermissionEntity.label(parsed['entity']).lower()}",
        )
        db.add(permission)
        created.append(permission)

    if created:
        db.flush()
        logfire.info("Permissions synchronised", created=len(created))
    return created
