"""
Integration tests for login, logout and the current-user endpoint.

Run with:
    pytest tests/integration/test_auth_api.py -v
"""

import pytest


pytestmark = pytest.mark.integration


def test_login_with_username_or_email(client, make_user):
    make_user("jane", permissions=["view users", "edit users"])

    for identifier in ("jane", "JANE@example.com"):
        response = client.post("/api/auth/login", json={"login": identifier, "password": "secret-password"})

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["user"]["username"] == "jane"
        assert data["user"]["permissions"] == ["edit users", "view users"]
        assert data["user"]["is_super_admin"] is False


def test_wrong_password_is_refused_with_a_toast(client, make_user):
    make_user("jane")

    response = client.post("/api/auth/login", json={"login": "jane", "password": "not-the-password"})

    assert response.status_code == 403
    assert response.json()["detail"] == "Invalid credentials"
    assert response.json()["toast"]["type"] == "error"


def test_inactive_accounts_cannot_log_in(client, make_user):
    make_user("dormant", is_active=False)

    response = client.post("/api/auth/login", json={"login": "dormant", "password": "secret-password"})

    assert response.status_code == 403
    assert response.json()["detail"] == "This account is not active"


def test_me_and_logout(client, super_admin, admin_headers):
    response = client.get("/api/auth/me", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["is_super_admin"] is True
    assert response.json()["roles"] == ["super_admin"]

    assert client.post("/api/auth/logout", headers=admin_headers).status_code == 204
    assert client.get("/api/auth/me", headers=admin_headers).status_code == 401


def test_missing_and_unknown_tokens(client, db):
    missing = client.get("/api/auth/me")
    assert missing.status_code == 401
    assert missing.json()["detail"] == "Not authenticated"
    assert missing.headers["www-authenticate"] == "Bearer"

    unknown = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
    assert unknown.status_code == 401
    assert unknown.json()["detail"] == "Invalid or expired token"


def test_a_new_login_replaces_the_previous_token(client, make_user):
    make_user("jane")
    first = client.post("/api/auth/login", json={"login": "jane", "password": "secret-password"}).json()
    client.post("/api/auth/login", json={"login": "jane", "password": "secret-password"})

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {first['access_token']}"})
    assert response.status_code == 401
