"""
Integration tests for the server-driven DataTable endpoints: state
operations, pagination, row and bulk actions, the confirmation round-trip
and saved preferences.

Run with:
    pytest tests/integration/test_datatables_api.py -v
"""

from datetime import datetime, timezone

import logfire
import pytest

from datatable.events import OPEN_MODAL, REDIRECT, SCROLL_TO_TOP, action_confirmed_event
from models.role import Role
from models.user import User


pytestmark = pytest.mark.integration


def state(**overrides):
    """A snapshot sorted by username so row order is deterministic."""
    snapshot = {"sort_by": "username", "sort_direction": "asc"}
    snapshot.update(overrides)
    return snapshot


def usernames(table):
    return [row["cells"]["username"] for row in table["rows"]]


def row_id(user):
    return str(user.id)


@pytest.fixture
def people(make_user):
    return {
        "alice": make_user("alice", name="Alice"),
        "bob": make_user("bob", name="Bob"),
        "carol": make_user("carol", name="Carol", is_active=False),
    }


def post_state(client, headers, snapshot, **operation):
    return client.post("/api/datatables/users/state", json={"state": snapshot, "operation": operation}, headers=headers)


# ===================================================================
# TESTS - Opening and rendering
# ===================================================================

def test_registered_tables(client, admin_headers):
    response = client.get("/api/datatables/", headers=admin_headers)
    assert response.json() == [
        "email_templates", "roles", "teams", "trash_roles", "trash_teams", "trash_users", "users",
    ]


def test_open_renders_the_view_model(client, admin_headers, people):
    response = client.get("/api/datatables/users", params={"sort_by": "username", "sort_direction": "asc"}, headers=admin_headers)

    assert response.status_code == 200
    table = response.json()
    assert table["id"] == "users"
    assert usernames(table) == ["alice", "bob", "carol", "root"]
    assert [column["field"] for column in table["columns"]][:3] == ["name", "username", "email"]
    assert table["pagination"]["summary"] == "Showing 1 to 4 of 4 results"
    assert table["per_page_options"] == [12, 25, 50, 100, 200]
    assert table["rows_clickable"] is True

    carol = table["rows"][2]
    assert carol["cells"]["is_active"] == {
        "component": "badge",
        "content": "Inactive",
        "props": {"variants": {"Active": "success", "Inactive": "neutral"}},
    }


def test_open_rejects_a_per_page_outside_the_options(client, admin_headers):
    response = client.get("/api/datatables/users", params={"per_page": 13}, headers=admin_headers)
    assert response.status_code == 422


def test_unknown_table(client, admin_headers):
    assert client.get("/api/datatables/widgets", headers=admin_headers).status_code == 404


def test_table_permission_is_enforced(client, make_user, token_for):
    headers = token_for(make_user("nobody"))

    response = client.get("/api/datatables/users", headers=headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "Missing permission: view users"


def test_invalid_snapshot_is_rejected(client, admin_headers):
    response = client.post("/api/datatables/users/render", json={"state": {"per_page": 7}}, headers=admin_headers)
    assert response.status_code == 422


# ===================================================================
# TESTS - Filters, search and sorting
# ===================================================================

def test_filter_toggling_changes_rows(client, admin_headers, people):
    table = post_state(client, admin_headers, state(), op="set_filter", key="status", value="inactive").json()

    assert usernames(table) == ["carol"]
    assert table["state"]["filters"] == {"status": "inactive"}
    assert table["active_filters"] == [
        {"key": "status", "label": "Status", "value": "inactive", "value_label": "Inactive"}
    ]

    table = post_state(client, admin_headers, table["state"], op="remove_filter", key="status").json()
    assert usernames(table) == ["alice", "bob", "carol", "root"]
    assert table["active_filters"] == []


def test_setting_a_filter_resets_the_page(client, admin_headers, people):
    table = post_state(client, admin_headers, state(page=3), op="set_filter", key="status", value="active").json()

    assert table["state"]["page"] == 1
    assert usernames(table) == ["alice", "bob", "root"]


def test_relationship_filter(client, admin_headers, make_user, db):
    db.add(Role(name="editor", display_name="Editor"))
    db.commit()
    make_user("dana", roles=["editor"])
    make_user("eve")

    table = post_state(client, admin_headers, state(), op="set_filter", key="role", value="editor").json()

    assert usernames(table) == ["dana"]
    role_filter = next(f for f in table["filters"] if f["key"] == "role")
    assert {"value": "editor", "label": "Editor"} in role_filter["options"]


def test_null_sentinel_filter(client, admin_headers, people, db):
    people["bob"].email_verified_at = datetime.now(timezone.utc)
    db.commit()

    verified = post_state(client, admin_headers, state(), op="set_filter", key="verified", value="verified").json()
    unverified = post_state(client, admin_headers, state(), op="set_filter", key="verified", value="unverified").json()

    assert usernames(verified) == ["bob"]
    assert usernames(unverified) == ["alice", "carol", "root"]


def test_unknown_filter_key(client, admin_headers):
    response = post_state(client, admin_headers, state(), op="set_filter", key="shoe_size", value="9")
    assert response.status_code == 400


@pytest.fixture
def dated_people(people, db):
    people["alice"].created_at = datetime(2024, 1, 10, 9, 30)
    people["bob"].created_at = datetime(2024, 3, 5, 14, 0)
    db.commit()
    return people


def test_date_range_with_a_date_only_upper_bound(client, admin_headers, dated_people):
    value = {"from": "2024-01-01", "to": "2024-01-10"}

    table = post_state(client, admin_headers, state(), op="set_filter", key="created", value=value).json()

    assert usernames(table) == ["alice"]


def test_date_range_with_only_a_lower_bound(client, admin_headers, dated_people):
    value = {"from": "2024-03-01T00:00:00"}

    table = post_state(client, admin_headers, state(), op="set_filter", key="created", value=value).json()

    assert usernames(table) == ["bob", "carol", "root"]


def test_invalid_date_range_is_rejected(client, admin_headers, people):
    response = post_state(client, admin_headers, state(), op="set_filter", key="created", value={"from": "not-a-date"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid date 'not-a-date'"
    assert response.json()["toast"]["type"] == "error"


def test_invalid_date_range_in_a_snapshot_is_rejected(client, admin_headers, people):
    snapshot = state(filters={"created": {"to": "31/01/2024"}})

    response = client.post("/api/datatables/users/render", json={"state": snapshot}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid date '31/01/2024'"


def test_clear_filters(client, admin_headers, people):
    table = post_state(client, admin_headers, state(filters={"status": "inactive"}), op="clear_filters").json()
    assert table["state"]["filters"] == {}
    assert len(table["rows"]) == 4


def test_search_across_columns_and_relationships(client, admin_headers, people):
    table = post_state(client, admin_headers, state(), op="set_search", value="  ali ").json()
    assert usernames(table) == ["alice"]
    assert table["state"]["search"] == "ali"

    table = post_state(client, admin_headers, state(), op="set_search", value="super_admin").json()
    assert usernames(table) == ["root"]


def test_sort_toggling(client, admin_headers, people):
    table = post_state(client, admin_headers, state(sort_by=None), op="sort", field="username").json()
    assert table["state"]["sort_direction"] == "asc"
    assert usernames(table) == ["alice", "bob", "carol", "root"]

    table = post_state(client, admin_headers, table["state"], op="sort", field="username").json()
    assert table["state"]["sort_direction"] == "desc"
    assert usernames(table) == ["root", "carol", "bob", "alice"]


def test_sorting_by_a_new_column_starts_ascending(client, admin_headers, people):
    table = post_state(client, admin_headers, state(sort_direction="desc"), op="sort", field="name").json()

    assert table["state"]["sort_by"] == "name"
    assert table["state"]["sort_direction"] == "asc"
    assert usernames(table) == ["alice", "bob", "carol", "root"]


def test_non_sortable_columns_are_ignored(client, admin_headers, people):
    table = post_state(client, admin_headers, state(), op="sort", field="roles.name").json()
    assert table["state"]["sort_by"] == "username"


# ===================================================================
# TESTS - Pagination
# ===================================================================

@pytest.fixture
def many_users(make_user):
    return [make_user(f"user{index:02d}") for index in range(14)]


def test_goto_page_and_clamping(client, admin_headers, many_users):
    table = post_state(client, admin_headers, state(), op="goto_page", page=2).json()

    assert table["state"]["page"] == 2
    assert table["pagination"]["summary"] == "Showing 13 to 15 of 15 results"
    assert table["pagination"]["links"]["next"]["disabled"] is True
    assert SCROLL_TO_TOP in [event["name"] for event in table["events"]]

    table = post_state(client, admin_headers, state(), op="goto_page", page=99).json()
    assert table["state"]["page"] == 2

    table = post_state(client, admin_headers, state(page=2), op="previous_page").json()
    assert table["state"]["page"] == 1


def test_out_of_range_snapshot_page_is_clamped(client, admin_headers, many_users):
    response = client.post("/api/datatables/users/render", json={"state": state(page=9)}, headers=admin_headers)
    assert response.json()["state"]["page"] == 2


def test_per_page_operation(client, admin_headers, many_users):
    table = post_state(client, admin_headers, state(page=2), op="set_per_page", per_page=25).json()

    assert table["state"]["per_page"] == 25
    assert table["state"]["page"] == 1
    assert len(table["rows"]) == 15
    assert table["pagination"]["has_pages"] is False

    response = post_state(client, admin_headers, state(), op="set_per_page", per_page=13)
    assert response.status_code == 400


def test_missing_operation_argument(client, admin_headers):
    assert post_state(client, admin_headers, state(), op="goto_page").status_code == 400


# ===================================================================
# TESTS - Selection
# ===================================================================

def test_row_selection(client, admin_headers, people):
    alice = row_id(people["alice"])

    table = post_state(client, admin_headers, state(), op="toggle_row", row_id=alice).json()
    assert table["state"]["selected"] == [alice]
    assert table["selection"] == {"count": 1, "all_selected": False}
    assert table["rows"][0]["selected"] is True

    table = post_state(client, admin_headers, table["state"], op="toggle_select_all").json()
    assert table["selection"] == {"count": 4, "all_selected": True}

    table = post_state(client, admin_headers, table["state"], op="toggle_select_all").json()
    assert table["state"]["selected"] == []


# ===================================================================
# TESTS - Row actions
# ===================================================================

def test_actions_without_confirmation_run_immediately(client, db, admin_headers, people):
    carol = people["carol"]

    response = client.post(
        "/api/datatables/users/actions/activate/confirmation",
        json={"state": state(), "row_id": row_id(carol)},
        headers=admin_headers,
    )

    outcome = response.json()["outcome"]
    assert outcome["status"] == "executed"
    assert outcome["result"]["type"] == "mutate"
    db.refresh(carol)
    assert carol.is_active is True
    assert response.json()["table"]["toasts"][0]["title"] == "User activated"


def test_confirmation_is_pending_then_runs_once(client, db, admin_headers, people):
    alice = people["alice"]
    request = {"state": state(), "row_id": row_id(alice)}

    with logfire.span("test.confirmation_round_trip"):
        pending = client.post("/api/datatables/users/actions/deactivate/confirmation", json=request, headers=admin_headers)

    outcome = pending.json()["outcome"]
    assert outcome["status"] == "pending"
    assert outcome["confirmation"]["message"] == "Deactivate Alice? They will be signed out."
    assert outcome["confirmation"]["confirm_event"] == action_confirmed_event("users")
    db.refresh(alice)
    assert alice.is_active is True

    confirmed = client.post(
        "/api/datatables/users/confirm",
        json={"state": state(), "action": outcome["confirmation"]["confirm_data"]},
        headers=admin_headers,
    )

    assert confirmed.status_code == 200
    assert confirmed.json()["outcome"]["result"]["action"] == "deactivate"
    db.refresh(alice)
    assert alice.is_active is False
    assert confirmed.json()["table"]["toasts"] == [
        {
            "title": "User deactivated",
            "subtitle": None,
            "content": "Alice",
            "type": "success",
            "position": "top-right",
            "link": None,
        }
    ]


def test_config_confirmation_copy(client, admin_headers, people):
    response = client.post(
        "/api/datatables/users/actions/delete/confirmation",
        json={"state": state(), "row_id": row_id(people["bob"])},
        headers=admin_headers,
    )

    confirmation = response.json()["outcome"]["confirmation"]
    assert confirmation["title"] == "Delete user"
    assert confirmation["message"] == "Delete Bob? They can be restored from the trash."
    assert confirmation["confirm_text"] == "Delete"
    assert confirmation["cancel_text"] == "Cancel"


def test_modal_actions(client, admin_headers, people):
    response = client.post(
        "/api/datatables/users/actions/edit/execute",
        json={"state": state(), "row_id": row_id(people["bob"])},
        headers=admin_headers,
    )

    result = response.json()["result"]
    assert result["type"] == "modal"
    assert result["modal"]["view_path"] == "users.edit-user"
    assert result["modal"]["view_props"] == {"user_id": row_id(people["bob"])}
    assert result["modal"]["datatable_id"] == "users"
    assert response.json()["table"]["events"][0]["name"] == OPEN_MODAL


def test_row_click_navigates(client, admin_headers, people):
    response = client.post(
        "/api/datatables/users/row-click",
        json={"state": state(), "row_id": row_id(people["bob"])},
        headers=admin_headers,
    )

    assert response.json()["result"] == {"type": "navigate", "url": f"/users/{people['bob'].id}"}
    assert response.json()["table"]["events"][0] == {"name": REDIRECT, "payload": {"url": f"/users/{people['bob'].id}"}}


def test_teams_rows_are_not_clickable(client, admin_headers):
    client.post("/api/teams/", json={"name": "support"}, headers=admin_headers)
    team = client.get("/api/teams/", headers=admin_headers).json()[0]

    response = client.post(
        "/api/datatables/teams/row-click",
        json={"row_id": team["id"]},
        headers=admin_headers,
    )
    assert response.json()["result"] == {"type": "noop"}


def test_missing_rows_and_unknown_actions_are_noops(client, admin_headers, people):
    unknown_action = client.post(
        "/api/datatables/users/actions/explode/execute",
        json={"state": state(), "row_id": row_id(people["bob"])},
        headers=admin_headers,
    )
    missing_row = client.post(
        "/api/datatables/users/actions/activate/execute",
        json={"state": state(), "row_id": "not-a-uuid"},
        headers=admin_headers,
    )

    assert unknown_action.json()["result"] == {"type": "noop"}
    assert missing_row.json()["result"] == {"type": "noop"}


def test_hidden_actions_are_noops(client, db, admin_headers, people):
    response = client.post(
        "/api/datatables/users/actions/activate/execute",
        json={"state": state(), "row_id": row_id(people["alice"])},
        headers=admin_headers,
    )
    assert response.json()["result"] == {"type": "noop"}


def test_own_row_hides_destructive_actions(client, admin_headers, super_admin, people):
    table = client.post("/api/datatables/users/render", json={"state": state()}, headers=admin_headers).json()

    rows = {row["cells"]["username"]: row for row in table["rows"]}
    assert [a["key"] for a in rows["root"]["actions"]] == ["view", "edit"]
    assert [a["key"] for a in rows["alice"]["actions"]] == ["view", "edit", "deactivate", "delete"]
    assert [a["key"] for a in rows["carol"]["actions"]] == ["view", "edit", "activate", "delete"]


# ===================================================================
# TESTS - Authorization of actions
# ===================================================================

@pytest.fixture
def viewer_headers(make_user, token_for):
    return token_for(make_user("viewer", permissions=["view users"]))


def test_unauthorized_actions_are_hidden(client, viewer_headers, people):
    table = client.post("/api/datatables/users/render", json={"state": state()}, headers=viewer_headers).json()

    assert {tuple(a["key"] for a in row["actions"]) for row in table["rows"]} == {("view",)}
    assert table["bulk_actions"] == []


def test_unauthorized_actions_are_refused(client, db, viewer_headers, people):
    bob = people["bob"]
    request = {"state": state(), "row_id": row_id(bob)}

    execute = client.post("/api/datatables/users/actions/delete/execute", json=request, headers=viewer_headers)
    confirmation = client.post("/api/datatables/users/actions/delete/confirmation", json=request, headers=viewer_headers)
    confirm = client.post(
        "/api/datatables/users/confirm",
        json={"state": state(), "action": {"action_key": "delete", "row_id": row_id(bob)}},
        headers=viewer_headers,
    )
    bulk = client.post(
        "/api/datatables/users/bulk-actions/delete/execute",
        json={"state": state(selected=[row_id(bob)])},
        headers=viewer_headers,
    )

    for response in (execute, confirmation, confirm, bulk):
        assert response.status_code == 403
        assert response.json()["detail"] == "Missing permission: delete users"

    db.refresh(bob)
    assert bob.deleted_at is None


# ===================================================================
# TESTS - Bulk actions
# ===================================================================

def test_confirmed_bulk_action_affects_exactly_the_selection(client, db, admin_headers, people):
    selected = [row_id(people["alice"]), row_id(people["bob"])]
    snapshot = state(selected=selected)

    pending = client.post(
        "/api/datatables/users/bulk-actions/delete/confirmation",
        json={"state": snapshot},
        headers=admin_headers,
    ).json()["outcome"]

    assert pending["status"] == "pending"
    assert pending["confirmation"]["title"] == "Delete users"
    assert pending["confirmation"]["message"] == "Delete 2 selected users?"
    assert pending["confirmation"]["confirm_data"] == {"action_key": "delete", "row_id": None, "is_bulk": True}

    response = client.post(
        "/api/datatables/users/confirm",
        json={"state": snapshot, "action": pending["confirmation"]["confirm_data"]},
        headers=admin_headers,
    ).json()

    assert response["outcome"]["result"]["affected"] == 2
    assert response["outcome"]["result"]["result"] == 2
    assert response["table"]["state"]["selected"] == []
    assert usernames(response["table"]) == ["carol", "root"]

    remaining = {user.username for user in db.query(User).filter(User.deleted_at.is_(None))}
    assert remaining == {"carol", "root"}


def test_bulk_actions_skip_the_acting_user(client, db, super_admin, admin_headers, people):
    snapshot = state(selected=[row_id(super_admin), row_id(people["alice"])])

    response = client.post(
        "/api/datatables/users/bulk-actions/deactivate/execute",
        json={"state": snapshot},
        headers=admin_headers,
    ).json()

    assert response["result"]["result"] == 1
    assert response["table"]["toasts"][0]["title"] == "1 users deactivated"
    db.refresh(super_admin)
    db.refresh(people["alice"])
    assert super_admin.is_active is True
    assert people["alice"].is_active is False


def test_bulk_action_without_selection_is_a_noop(client, admin_headers, people):
    response = client.post(
        "/api/datatables/users/bulk-actions/activate/execute",
        json={"state": state()},
        headers=admin_headers,
    )
    assert response.json()["result"] == {"type": "noop"}


def test_bulk_action_without_confirmation_executes(client, db, admin_headers, people):
    response = client.post(
        "/api/datatables/users/bulk-actions/activate/confirmation",
        json={"state": state(selected=[row_id(people["carol"])])},
        headers=admin_headers,
    ).json()

    assert response["outcome"]["status"] == "executed"
    db.refresh(people["carol"])
    assert people["carol"].is_active is True


def test_role_bulk_delete_skips_system_roles(client, db, admin_headers):
    custom = client.post("/api/roles/", json={"name": "editor"}, headers=admin_headers).json()
    system = db.query(Role).filter(Role.name == "super_admin").one()

    response = client.post(
        "/api/datatables/roles/bulk-actions/delete/execute",
        json={"state": {"sort_by": "name", "selected": [custom["id"], str(system.id)]}},
        headers=admin_headers,
    ).json()

    assert [row["cells"]["name"] for row in response["table"]["rows"]] == ["super_admin"]
    assert [a["key"] for a in response["table"]["rows"][0]["actions"]] == ["edit"]


# ===================================================================
# TESTS - Preferences
# ===================================================================

def test_preferences_are_saved_and_restored(client, db, super_admin, admin_headers, people):
    post_state(client, admin_headers, state(sort_by=None), op="sort", field="name")
    post_state(client, admin_headers, state(sort_by="name"), op="set_filter", key="status", value="active")

    db.refresh(super_admin)
    saved = super_admin.datatable_preferences["users"]
    assert saved["sort_by"] == "name"
    assert saved["filters"] == {"status": "active"}

    table = client.get("/api/datatables/users", headers=admin_headers).json()
    assert table["state"]["sort_by"] == "name"
    assert table["state"]["filters"] == {"status": "active"}
    assert usernames(table) == ["alice", "bob", "root"]


def test_query_string_overrides_win_and_are_saved(client, db, super_admin, admin_headers):
    client.get("/api/datatables/users", params={"per_page": 50, "sort_direction": "desc"}, headers=admin_headers)

    db.refresh(super_admin)
    saved = super_admin.datatable_preferences["users"]
    assert saved["per_page"] == 50
    assert saved["sort_direction"] == "desc"


# ===================================================================
# TESTS - Other tables
# ===================================================================

@pytest.fixture
def templates(client, admin_headers):
    draft = client.post(
        "/api/email-templates/",
        json={"name": "welcome", "translations": [{"locale": "en_US", "subject": "Hi", "html_content": "<p>Hi</p>"}]},
        headers=admin_headers,
    ).json()
    layout = client.post("/api/email-templates/", json={"name": "base", "is_layout": True}, headers=admin_headers).json()
    return {"draft": draft, "layout": layout}


def test_email_template_boolean_filter(client, admin_headers, templates):
    response = client.post(
        "/api/datatables/email_templates/state",
        json={"state": {"sort_by": "name"}, "operation": {"op": "set_filter", "key": "is_layout", "value": "1"}},
        headers=admin_headers,
    ).json()

    assert [row["cells"]["name"] for row in response["rows"]] == ["base"]
    assert response["active_filters"][0]["value_label"] == "Layouts"


def test_email_template_publish_action(client, admin_headers, templates):
    request = {"state": {"sort_by": "name"}, "row_id": templates["draft"]["id"]}

    response = client.post("/api/datatables/email_templates/actions/publish/execute", json=request, headers=admin_headers)

    assert response.status_code == 200
    welcome = next(row for row in response.json()["table"]["rows"] if row["cells"]["name"] == "welcome")
    assert welcome["cells"]["status"]["content"] == "published"
    assert "publish" not in [action["key"] for action in welcome["actions"]]


def test_rejected_row_action_surfaces_the_error(client, admin_headers, templates):
    request = {"state": {}, "row_id": templates["layout"]["id"]}

    response = client.post("/api/datatables/email_templates/actions/publish/execute", json=request, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["toast"]["type"] == "error"


def test_view_confirmation(client, admin_headers, templates):
    response = client.post(
        "/api/datatables/email_templates/actions/delete/confirmation",
        json={"state": {}, "row_id": templates["draft"]["id"]},
        headers=admin_headers,
    ).json()

    confirmation = response["outcome"]["confirmation"]
    assert confirmation["view"] == "email-templates.confirm-delete"
    assert confirmation["title"] == "Delete template"


def test_team_search_by_member_name(client, admin_headers, people):
    client.post("/api/teams/", json={"name": "support", "members": ["alice"]}, headers=admin_headers)
    client.post("/api/teams/", json={"name": "sales", "members": ["bob"]}, headers=admin_headers)

    response = client.post(
        "/api/datatables/teams/state",
        json={"state": {"sort_by": "name"}, "operation": {"op": "set_search", "value": "alice"}},
        headers=admin_headers,
    ).json()

    assert [row["cells"]["name"] for row in response["rows"]] == ["support"]
    assert "users.name" not in response["rows"][0]["cells"]
