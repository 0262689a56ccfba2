"""
Integration tests for roles, teams and the permission matrix.
"""

import pytest

from models.role import Role


pytestmark = pytest.mark.integration


def test_role_permissions_are_assigned_by_name(client, admin_headers):
    response = client.post(
        "/api/roles/",
        json={"name": "editor", "display_name": "Editor", "permissions": ["view users", "edit users"]},
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json()["permissions"] == ["edit users", "view users"]
    assert response.json()["is_system"] is False


def test_permissions_outside_the_matrix_are_rejected(client, admin_headers):
    response = client.post("/api/roles/", json={"name": "odd", "permissions": ["fly users"]}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid permissions: fly users"


def test_role_permissions_flow_to_members(client, make_user, token_for, admin_headers):
    client.post("/api/roles/", json={"name": "viewer", "permissions": ["view users"]}, headers=admin_headers)
    member = make_user("member", roles=["viewer"])
    headers = token_for(member)

    assert client.get("/api/users/", headers=headers).status_code == 200
    assert client.get("/api/roles/", headers=headers).status_code == 403


def test_update_role_permissions(client, admin_headers):
    role_id = client.post("/api/roles/", json={"name": "editor"}, headers=admin_headers).json()["id"]

    response = client.patch(f"/api/roles/{role_id}", json={"permissions": ["view teams"]}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["permissions"] == ["view teams"]


def test_system_roles_are_protected(client, db, admin_headers):
    role = db.query(Role).filter(Role.name == "super_admin").one()

    assert client.patch(f"/api/roles/{role.id}", json={"name": "boss"}, headers=admin_headers).status_code == 400
    response = client.delete(f"/api/roles/{role.id}", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "System roles cannot be deleted"


def test_delete_role(client, admin_headers):
    role_id = client.post("/api/roles/", json={"name": "temp"}, headers=admin_headers).json()["id"]

    assert client.delete(f"/api/roles/{role_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/roles/{role_id}", headers=admin_headers).status_code == 404
    assert [role["name"] for role in client.get("/api/roles/", headers=admin_headers).json()] == ["super_admin"]


def test_duplicate_role_name(client, admin_headers):
    client.post("/api/roles/", json={"name": "editor"}, headers=admin_headers)
    assert client.post("/api/roles/", json={"name": "editor"}, headers=admin_headers).status_code == 409


# ===================================================================
# TESTS - Teams
# ===================================================================

def test_team_membership_by_username(client, make_user, admin_headers):
    make_user("alice")
    make_user("bob")

    response = client.post("/api/teams/", json={"name": "support", "members": ["alice", "bob"]}, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["member_count"] == 2

    team_id = response.json()["id"]
    response = client.patch(f"/api/teams/{team_id}", json={"members": ["alice"]}, headers=admin_headers)
    assert response.json()["member_count"] == 1


def test_unknown_team_member(client, admin_headers):
    response = client.post("/api/teams/", json={"name": "support", "members": ["ghost"]}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Unknown users: ghost"


def test_delete_team(client, admin_headers):
    team_id = client.post("/api/teams/", json={"name": "support"}, headers=admin_headers).json()["id"]

    assert client.delete(f"/api/teams/{team_id}", headers=admin_headers).status_code == 200
    assert client.get("/api/teams/", headers=admin_headers).json() == []


# ===================================================================
# TESTS - Permission matrix
# ===================================================================

def test_permission_matrix(client, make_user, token_for):
    headers = token_for(make_user("plain"))

    response = client.get("/api/permissions/matrix", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["actions"][:4] == ["view", "create", "edit", "delete"]
    users_row = next(row for row in data["rows"] if row["entity"] == "users")
    assert users_row["actions"]["activate"] is True
    assert users_row["actions"]["publish"] is False
