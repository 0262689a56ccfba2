"""Users listing."""

from sqlalchemy.orm import Query

from datatable import Action, BulkAction, Column, DataTable, Filter, register_table
from models.role import Role
from models.team import Team
from models.user import User
from services import users as user_service


def _date(value, row):
    return value.strftime("%Y-%m-%d") if value else None


@register_table
class UserTable(DataTable):
    name = "users"
    model = User
    permission = "view users"
    default_sort_by = "created_at"
    default_sort_direction = "desc"

    def base_query(self) -> Query:
        return self.db.query(User).filter(User.deleted_at.is_(None)).order_by(User.created_at.desc(), User.id)

    def columns(self):
        return [
            Column.make("Name").sortable().searchable(),
            Column.make("Username").sortable().searchable(),
            Column.make("Email").sortable().searchable(),
            Column.make("Roles", "roles.name").searchable().format(lambda value, row: ", ".join(sorted(value or []))),
            Column.make("Status", "is_active")
                .sortable()
                .format(lambda value, row: "Active" if value else "Inactive")
                .type("badge", {"variants": {"Active": "success", "Inactive": "neutral"}}),
            Column.make("Created", "created_at").sortable().format(_date),
        ]

    def filters(self):
        return [
            Filter.make("status", "Status")
                .options({"active": "Active", "inactive": "Inactive"})
                .value_mapping({"active": True, "inactive": False})
                .field_mapping("is_active"),
            Filter.make("role", "Role")
                .options_callback(self._role_options)
                .relationship("roles", "name"),
            Filter.make("team", "Team")
                .options_callback(self._team_options)
                .relationship("teams", "name"),
            Filter.make("verified", "Email verified")
                .options({"verified": "Verified", "unverified": "Unverified"})
                .value_mapping({"verified": "not_null", "unverified": "null"})
                .field_mapping("email_verified_at"),
            Filter.make("created", "Created").type("date_range").field_mapping("created_at"),
        ]

    def _role_options(self):
        roles = self.db.query(Role).filter(Role.deleted_at.is_(None)).order_by(Role.name).all()
        return {role.name: role.display_name or role.name for role in roles}

    def _team_options(self):
        teams = self.db.query(Team).filter(Team.deleted_at.is_(None)).order_by(Team.name).all()
        return {team.name: team.display_name or team.name for team in teams}

    def _is_self(self, row) -> bool:
        return self.user is not None and row.id == self.user.id

    def row_actions(self):
        return [
            Action.make("view", "View").icon("eye").route(lambda user: f"/users/{user.id}").can("view users"),
            Action.make("edit", "Edit")
                .icon("pencil")
                .modal("users.edit-user", lambda user: {"user_id": str(user.id)})
                .can("edit users"),
            Action.make("activate", "Activate")
                .icon("check-circle")
                .execute(self._activate)
                .show(lambda user: not user.is_active)
                .can("activate users"),
            Action.make("deactivate", "Deactivate")
                .icon("pause-circle")
                .execute(self._deactivate)
                .show(lambda user: user.is_active and not self._is_self(user))
                .confirm(lambda user: f"Deactivate {user.name}? They will be signed out.")
                .can("activate users"),
            Action.make("delete", "Delete")
                .icon("trash")
                .variant("danger")
                .execute(self._delete)
                .show(lambda user: not self._is_self(user))
                .confirm(lambda user: {
                    "title": "Delete user",
                    "content": f"Delete {user.name}? They can be restored from the trash.",
                    "confirm_text": "Delete",
                })
                .can("delete users"),
        ]

    def bulk_actions(self):
        return [
            BulkAction.make("activate", "Activate").icon("check-circle").execute(self._bulk_activate).can("activate users"),
            BulkAction.make("deactivate", "Deactivate")
                .icon("pause-circle")
                .execute(self._bulk_deactivate)
                .confirm(lambda users: f"Deactivate {len(users)} users?")
                .can("activate users"),
            BulkAction.make("delete", "Delete")
                .icon("trash")
                .variant("danger")
                .execute(self._bulk_delete)
                .confirm(lambda users: {
                    "title": "Delete users",
                    "content": f"Delete {len(users)} selected users?",
                    "confirm_text": "Delete",
                })
                .can("delete users"),
        ]

    def row_click(self, row):
        return self.find_row_action("view")

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _activate(self, user):
        user_service.activate_user(self.db, user)
        self.notify("User activated", content=user.name)

    def _deactivate(self, user):
        user_service.deactivate_user(self.db, user, acting_user=self.user)
        self.notify("User deactivated", content=user.name)

    def _delete(self, user):
        user_service.delete_user(self.db, user, acting_user=self.user)
        self.notify("User deleted", content=user.name)

    def _others(self, users):
        return [user for user in users if not self._is_self(user)]

    def _bulk_activate(self, users):
        for user in users:
            user_service.activate_user(self.db, user)
        self.notify(f"{len(users)} users activated")
        return len(users)

    def _bulk_deactivate(self, users):
        targets = self._others(users)
        for user in targets:
            user_service.deactivate_user(self.db, user, acting_user=self.user)
        self.notify(f"{len(targets)} users deactivated")
        return len(targets)

    def _bulk_delete(self, users):
        targets = self._others(users)
        for user in targets:
            user_service.delete_user(self.db, user, acting_user=self.user)
        self.notify(f"{len(targets)} users deleted")
        return len(targets)
