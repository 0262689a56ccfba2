"""
Tests for the permission matrix naming helpers.
"""

import pytest

from services.permission_matrix import PermissionEntity, PermissionMatrix, permission_matrix


pytestmark = pytest.mark.unit


def test_permission_names_are_action_then_entity():
    assert PermissionMatrix.permission_name("users", "edit") == "edit users"
    assert "publish email_templates" in permission_matrix.all_permission_names()
    assert "publish users" not in permission_matrix.all_permission_names()


def test_all_actions_keep_first_seen_order():
    assert permission_matrix.all_actions() == [
        "view", "create", "edit", "delete", "activate", "export",
        "restore", "force_delete", "publish", "configure",
    ]


@pytest.mark.parametrize(
    "name, expected",
    [
        ("edit users", {"action": "edit", "entity": "users"}),
        ("view email_templates", {"action": "view", "entity": "email_templates"}),
        ("users", None),
        ("", None),
    ],
)
def test_parse(name, expected):
    assert PermissionMatrix.parse(name) == expected


def test_validity_follows_the_matrix():
    assert permission_matrix.is_valid("configure mail_settings") is True
    assert permission_matrix.is_valid("create mail_settings") is False
    assert permission_matrix.is_valid("edit widgets") is False
    assert permission_matrix.is_valid("nonsense") is False


def test_matrix_for_ui_has_a_flag_for_every_action():
    rows = {row["entity"]: row for row in permission_matrix.matrix_for_ui()}

    assert rows["notifications"]["label"] == "Notifications"
    assert rows["notifications"]["actions"] == {
        "view": True,
        "create": False,
        "edit": False,
        "delete": True,
        "activate": False,
        "export": False,
        "restore": False,
        "force_delete": False,
        "publish": False,
        "configure": False,
    }


def test_custom_matrix_is_copied():
    source = {"reports": ["view"]}
    matrix = PermissionMatrix(source)
    source["reports"].append("delete")

    assert matrix.actions_for("reports") == ["view"]
    assert matrix.entities_for_action("view") == ["reports"]
    assert PermissionEntity.label("reports") == "Reports"
    assert PermissionEntity.label("mail_settings") == "Mail settings"
