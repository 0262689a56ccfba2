"""
Integration tests for the trash tables: listing soft-deleted users, roles
and teams, restoring them and deleting them permanently.

Run with:
    pytest tests/integration/test_trash_api.py -v
"""

import pytest

from models.mail_settings import MailSettings
from models.notification import Notification
from models.team import Team
from models.user import User
from services import roles as role_service
from services import teams as team_service
from services import users as user_service
from services.notifications import NotificationBuilder


pytestmark = pytest.mark.integration


def names(table):
    return [row["cells"]["name"] for row in table["rows"]]


@pytest.fixture
def trashed_alice(db, make_user, super_admin):
    alice = make_user("alice", name="Alice")
    make_user("bob", name="Bob")
    user_service.delete_user(db, alice, acting_user=super_admin)
    db.commit()
    return alice


# ===================================================================
# TESTS - Listing
# ===================================================================

def test_trash_lists_only_deleted_records(client, admin_headers, trashed_alice):
    response = client.get("/api/datatables/trash_users", headers=admin_headers)

    assert response.status_code == 200
    table = response.json()
    assert names(table) == ["Alice"]
    assert [column["field"] for column in table["columns"]] == ["name", "email", "deleted_at"]
    assert [action["key"] for action in table["rows"][0]["actions"]] == ["restore", "force_delete"]
    assert [action["key"] for action in table["bulk_actions"]] == ["restore", "force_delete"]


def test_active_records_cannot_be_restored(client, db, admin_headers, trashed_alice):
    bob = db.query(User).filter(User.username == "bob").one()

    response = client.post(
        "/api/datatables/trash_users/actions/restore/execute",
        json={"state": {}, "row_id": str(bob.id)},
        headers=admin_headers,
    )

    assert response.json()["result"] == {"type": "noop"}


# ===================================================================
# TESTS - Restore
# ===================================================================

def test_restore_asks_for_confirmation_then_runs(client, db, admin_headers, trashed_alice):
    request = {"state": {}, "row_id": str(trashed_alice.id)}

    pending = client.post(
        "/api/datatables/trash_users/actions/restore/confirmation", json=request, headers=admin_headers
    ).json()["outcome"]

    assert pending["status"] == "pending"
    assert pending["confirmation"]["message"] == "Restore the user Alice?"

    confirmed = client.post(
        "/api/datatables/trash_users/confirm",
        json={"state": {}, "action": pending["confirmation"]["confirm_data"]},
        headers=admin_headers,
    ).json()

    assert confirmed["outcome"]["result"]["action"] == "restore"
    assert confirmed["table"]["rows"] == []
    assert confirmed["table"]["toasts"][0]["title"] == "User restored"
    db.refresh(trashed_alice)
    assert trashed_alice.deleted_at is None
    assert trashed_alice.is_active is False


def test_bulk_restore_makes_roles_assignable_again(client, db, admin_headers):
    editor = role_service.create_role(db, name="editor")
    role_service.delete_role(db, editor)
    db.commit()

    response = client.post(
        "/api/datatables/trash_roles/bulk-actions/restore/execute",
        json={"state": {"selected": [str(editor.id)]}},
        headers=admin_headers,
    ).json()

    assert response["result"]["affected"] == 1
    assert response["table"]["toasts"][0]["title"] == "1 roles restored"

    created = client.post("/api/users/", json={"name": "Jane", "roles": ["editor"]}, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["roles"] == ["editor"]


# ===================================================================
# TESTS - Permanent delete
# ===================================================================

def test_force_delete_removes_the_user_and_what_they_own(client, db, admin_headers, trashed_alice):
    alice_id = trashed_alice.id
    NotificationBuilder.make("Welcome").to_user(trashed_alice).persist().send(db)
    db.add(MailSettings(scope="user", owner_id=alice_id, host="alice.example.com"))
    db.commit()
    request = {"state": {}, "row_id": str(alice_id)}

    pending = client.post(
        "/api/datatables/trash_users/actions/force_delete/confirmation", json=request, headers=admin_headers
    ).json()["outcome"]

    assert pending["confirmation"]["title"] == "Delete user permanently"
    assert pending["confirmation"]["confirm_text"] == "Delete permanently"

    response = client.post(
        "/api/datatables/trash_users/actions/force_delete/execute", json=request, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["result"]["type"] == "mutate"
    assert response.json()["table"]["toasts"][0]["title"] == "User permanently deleted"
    assert db.query(User).filter(User.id == alice_id).first() is None
    assert db.query(Notification).filter(Notification.user_id == alice_id).count() == 0
    assert db.query(MailSettings).filter(MailSettings.owner_id == alice_id).count() == 0


def test_bulk_force_delete_of_teams_is_confirmed(client, db, admin_headers):
    teams = [team_service.create_team(db, name=name) for name in ("alpha", "beta")]
    db.add(MailSettings(scope="team", owner_id=teams[0].id, host="alpha.example.com"))
    for team in teams:
        team_service.delete_team(db, team)
    db.commit()
    snapshot = {"selected": [str(team.id) for team in teams]}

    pending = client.post(
        "/api/datatables/trash_teams/bulk-actions/force_delete/confirmation",
        json={"state": snapshot},
        headers=admin_headers,
    ).json()["outcome"]

    assert pending["status"] == "pending"
    assert pending["confirmation"]["message"] == "Permanently delete 2 teams?"

    response = client.post(
        "/api/datatables/trash_teams/confirm",
        json={"state": snapshot, "action": pending["confirmation"]["confirm_data"]},
        headers=admin_headers,
    ).json()

    assert response["outcome"]["result"]["affected"] == 2
    assert response["table"]["rows"] == []
    assert db.query(Team).filter(Team.name.in_(["alpha", "beta"])).count() == 0
    assert db.query(MailSettings).filter(MailSettings.scope == "team").count() == 0


def test_bulk_force_delete_runs_directly_through_execute(client, db, admin_headers, trashed_alice):
    response = client.post(
        "/api/datatables/trash_users/bulk-actions/force_delete/execute",
        json={"state": {"selected": [str(trashed_alice.id)]}},
        headers=admin_headers,
    ).json()

    assert response["result"]["affected"] == 1
    assert response["table"]["toasts"][0]["title"] == "1 users permanently deleted"
    assert db.query(User).filter(User.username == "alice").first() is None


# ===================================================================
# TESTS - Authorization
# ===================================================================

def test_trash_needs_the_view_permission(client, make_user, token_for):
    headers = token_for(make_user("nobody"))

    response = client.get("/api/datatables/trash_teams", headers=headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "Missing permission: view teams"


def test_trash_actions_follow_restore_and_force_delete_permissions(client, db, make_user, token_for, trashed_alice):
    restorer = token_for(make_user("restorer", permissions=["view users", "restore users"]))
    viewer = token_for(make_user("viewer", permissions=["view users"]))

    restorer_table = client.get("/api/datatables/trash_users", headers=restorer).json()
    viewer_table = client.get("/api/datatables/trash_users", headers=viewer).json()

    assert [action["key"] for action in restorer_table["rows"][0]["actions"]] == ["restore"]
    assert [action["key"] for action in restorer_table["bulk_actions"]] == ["restore"]
    assert viewer_table["rows"][0]["actions"] == []
    assert viewer_table["bulk_actions"] == []

    refused = client.post(
        "/api/datatables/trash_users/actions/force_delete/execute",
        json={"state": {}, "row_id": str(trashed_alice.id)},
        headers=restorer,
    )

    assert refused.status_code == 403
    assert refused.json()["detail"] == "Missing permission: force_delete users"
    db.refresh(trashed_alice)
    assert trashed_alice.deleted_at is not None
