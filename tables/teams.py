"""Teams listing."""

from sqlalchemy.orm import Query

from datatable import Action, BulkAction, Column, DataTable, register_table
from models.team import Team
from services import teams as team_service


@register_table
class TeamTable(DataTable):
    name = "teams"
    model = Team
    permission = "view teams"
    default_sort_by = "name"

    def base_query(self) -> Query:
        return self.db.query(Team).filter(Team.deleted_at.is_(None)).order_by(Team.name)

    def columns(self):
        return [
            Column.make("Name").sortable().searchable(),
            Column.make("Display name").sortable().searchable(),
            Column.make("Members", "users").content(lambda team: len(team.users)),
            Column.make("Member names", "users.name").searchable().hidden(),
        ]

    def row_actions(self):
        return [
            Action.make("edit", "Edit")
                .icon("pencil")
                .modal("teams.edit-team", lambda team: {"team_id": str(team.id)})
                .can("edit teams"),
            Action.make("delete", "Delete")
                .icon("trash")
                .variant("danger")
                .execute(self._delete)
                .confirm(lambda team: f"Delete the team {team.name}?")
                .can("delete teams"),
        ]

    def bulk_actions(self):
        return [
            BulkAction.make("delete", "Delete")
                .icon("trash")
                .variant("danger")
                .execute(self._bulk_delete)
                .confirm()
                .can("delete teams"),
        ]

    def _delete(self, team):
        team_service.delete_team(self.db, team)
        self.notify("Team deleted", content=team.name)

    def _bulk_delete(self, teams):
        for team in teams:
            team_service.delete_team(self.db, team)
        self.notify(f"{len(teams)} teams deleted")
        return len(teams)
