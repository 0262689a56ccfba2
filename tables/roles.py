"""Roles listing."""

from sqlalchemy.orm import Query

from datatable import Action, BulkAction, Column, DataTable, Filter, register_table
from models.role import Role
from services import roles as role_service


@register_table
class RoleTable(DataTable):
    name = "roles"
    model = Role
    permission = "view roles"
    default_sort_by = "name"

    def base_query(self) -> Query:
        return self.db.query(Role).filter(Role.deleted_at.is_(None)).order_by(Role.name)

    def columns(self):
        return [
            Column.make("Name").sortable().searchable(),
            Column.make("Display name").sortable().searchable(),
            Column.make("Permissions", "permissions").content(lambda role: len(role.permissions)),
            Column.make("Users", "users").content(lambda role: len(role.users)),
            Column.make("System", "is_system")
                .format(lambda value, row: "System" if value else "Custom")
                .type("badge"),
        ]

    def filters(self):
        return [
            Filter.make("system", "Type")
                .options({"system": "System", "custom": "Custom"})
                .value_mapping({"system": True, "custom": False})
                .field_mapping("is_system"),
        ]

    def row_actions(self):
        return [
            Action.make("edit", "Edit")
                .icon("pencil")
                .modal("roles.edit-role", lambda role: {"role_id": str(role.id)})
                .can("edit roles"),
            Action.make("delete", "Delete")
                .icon("trash")
                .variant("danger")
                .execute(self._delete)
                .show(lambda role: not role.is_system)
                .confirm(lambda role: f"Delete the role {role.name}? Users lose its permissions.")
                .can("delete roles"),
        ]

    def bulk_actions(self):
        return [
            BulkAction.make("delete", "Delete")
                .icon("trash")
                .variant("danger")
                .execute(self._bulk_delete)
                .confirm(lambda roles: f"Delete {len(roles)} roles? System roles are skipped.")
                .can("delete roles"),
        ]

    def row_click(self, row):
        return self.find_row_action("edit")

    def _delete(self, role):
        role_service.delete_role(self.db, role)
        self.notify("Role deleted", content=role.name)

    def _bulk_delete(self, roles):
        targets = [role for role in roles if not role.is_system]
        for role in targets:
            role_service.delete_role(self.db, role)
        self.notify(f"{len(targets)} roles deleted")
        return len(targets)
