"""Trash listings: soft-deleted users, roles and teams."""

from sqlalchemy.orm import Query

from datatable import Action, BulkAction, Column, DataTable, register_table
from services import trash as trash_service
from services.permission_matrix import PermissionEntity


def _datetime(value, row):
    return value.strftime("%Y-%m-%d %H:%M") if value else None


class TrashTable(DataTable):
    """
    Soft-deleted records of one entity, with restore and permanent delete.

    Subclasses only set `entity`; everything else comes from the trash
    registry in services/trash.py.
    """

    entity: str = ""
    default_sort_by = "deleted_at"
    default_sort_direction = "desc"

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        config = trash_service.get_trash_entity(cls.entity)
        if config is not None:
            cls.name = f"trash_{cls.entity}"
            cls.model = config.model
            cls.permission = config.view_permission

    @property
    def config(self) -> trash_service.TrashEntity:
        return trash_service.get_trash_entity(self.entity)

    def base_query(self) -> Query:
        model = self.model
        return trash_service.trashed(self.db, model).order_by(model.deleted_at.desc(), model.id)

    def columns(self):
        columns = [Column.make(field.capitalize(), field).sortable().searchable() for field in self.config.search_fields]
        columns.append(Column.make("Deleted", "deleted_at").sortable().format(_datetime))
        return columns

    def row_actions(self):
        label = self.config.label_singular
        return [
            Action.make("restore", "Restore")
                .icon("arrow-uturn-left")
                .color("success")
                .execute(self._restore)
                .confirm(lambda row: f"Restore the {label} {row.name}?")
                .can(self.config.restore_permission),
            Action.make("force_delete", "Delete permanently")
                .icon("trash")
                .variant("danger")
                .execute(self._force_delete)
                .confirm(lambda row: {
                    "title": f"Delete {label} permanently",
                    "content": f"{row.name} will be removed for good. This cannot be undone.",
                    "confirm_text": "Delete permanently",
                })
                .can(self.config.force_delete_permission),
        ]

    def bulk_actions(self):
        return [
            BulkAction.make("restore", "Restore selected")
                .icon("arrow-uturn-left")
                .execute(self._bulk_restore)
                .can(self.config.restore_permission),
            BulkAction.make("force_delete", "Delete selected permanently")
                .icon("trash")
                .variant("danger")
                .execute(self._bulk_force_delete)
                .confirm(lambda rows: f"Permanently delete {len(rows)} {self.config.label_plural.lower()}?")
                .can(self.config.force_delete_permission),
        ]

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _restore(self, row):
        trash_service.restore(self.db, row)
        self.notify(f"{self.config.label_singular.capitalize()} restored", content=row.name)

    def _force_delete(self, row):
        name = row.name
        trash_service.force_delete(self.db, row)
        self.notify(f"{self.config.label_singular.capitalize()} permanently deleted", content=name)

    def _bulk_restore(self, rows):
        for row in rows:
            trash_service.restore(self.db, row)
        self.notify(f"{len(rows)} {self.config.label_plural.lower()} restored")
        return len(rows)

    def _bulk_force_delete(self, rows):
        for row in rows:
            trash_service.force_delete(self.db, row)
        self.notify(f"{len(rows)} {self.config.label_plural.lower()} permanently deleted")
        return len(rows)


@register_table
class UserTrashTable(TrashTable):
    entity = PermissionEntity.USERS


@register_table
class RoleTrashTable(TrashTable):
    entity = PermissionEntity.ROLES


@register_table
class TeamTrashTable(TrashTable):
    entity = PermissionEntity.TEAMS
