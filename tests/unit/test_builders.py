"""
Tests for the column, filter and action builders.
"""

from types import SimpleNamespace

import pytest

from datatable import Action, BulkAction, Column, Filter
from datatable.builders import DEFAULT_CONFIRM_MESSAGE, DEFAULT_CONFIRM_TITLE


pytestmark = pytest.mark.unit


class FakeUser:
    def __init__(self, *permissions):
        self.permissions = set(permissions)

    def has_permission(self, name):
        return name in self.permissions


@pytest.fixture
def row():
    return SimpleNamespace(
        id="row-1",
        name="Jane Doe",
        is_active=True,
        roles=[SimpleNamespace(name="editor"), SimpleNamespace(name="viewer")],
    )


# ===================================================================
# TESTS - Columns
# ===================================================================

def test_column_field_defaults_to_snake_case_label():
    assert Column.make("Display name").field == "display_name"
    assert Column.make("Roles", "roles.name").field == "roles.name"


def test_column_flags():
    column = Column.make("Name").sortable().searchable()
    assert column.is_sortable() and column.is_searchable()
    assert Column.make("Name").sortable(lambda: False).is_sortable() is False


def test_dotted_fields_flatten_collections(row):
    assert Column.make("Roles", "roles.name").resolve_value(row) == ["editor", "viewer"]
    assert Column.make("Roles", "roles.name").parse_relationship() == (["roles"], "name")


def test_format_and_content_callbacks(row):
    status = Column.make("Status", "is_active").format(lambda value, r: "Active" if value else "Inactive")
    initials = Column.make("Initials", "name").content(lambda r: "".join(p[0] for p in r.name.split()))

    assert status.resolve_value(row) == "Active"
    assert initials.resolve_value(row) == "JD"


def test_component_columns_wrap_the_value(row):
    badge = Column.make("Status", "is_active").format(lambda v, r: "Active").type("badge", {"color": "green"})
    assert badge.resolve_value(row) == {"component": "badge", "content": "Active", "props": {"color": "green"}}
    assert badge.to_dict()["component"] == "badge"


def test_hidden_columns(row):
    assert Column.make("Name").hidden().is_hidden(row) is True
    assert Column.make("Name").hidden(lambda r: r.is_active).is_hidden(row) is True
    assert Column.make("Name").is_hidden(row) is False


# ===================================================================
# TESTS - Filters
# ===================================================================

def test_filter_options_start_with_the_placeholder():
    options = Filter.make("status", "Status").options({"active": "Active"}).get_options()
    assert options == [{"value": "", "label": "All"}, {"value": "active", "label": "Active"}]

    custom = Filter.make("status", "Status").placeholder("Any status").options({}).get_options()
    assert custom[0]["label"] == "Any status"


def test_callback_options_are_resolved_once():
    calls = []

    def options():
        calls.append(1)
        return {"a": "A"}

    filter_ = Filter.make("letter", "Letter").options_callback(options)
    filter_.get_options()
    filter_.get_options()
    assert len(calls) == 1

    filter_.clear_resolved_options()
    filter_.get_options()
    assert len(calls) == 2


def test_value_mapping_handles_scalars_and_lists():
    filter_ = Filter.make("status", "Status").value_mapping({"active": True, "inactive": False})
    assert filter_.map_value("active") is True
    assert filter_.map_value(["active", "inactive"]) == [True, False]
    assert filter_.map_value("unknown") == "unknown"


def test_unknown_filter_type_is_rejected():
    with pytest.raises(ValueError):
        Filter.make("x", "X").type("slider")


def test_option_label_matches_stringified_values():
    filter_ = Filter.make("flag", "Flag").options({1: "One"})
    assert filter_.option_label("1") == "One"
    assert filter_.option_label("2") is None


# ===================================================================
# TESTS - Actions
# ===================================================================

def test_actions_without_permission_are_open(row):
    action = Action.make("view", "View").route("/users/1")
    assert action.should_render(row, None) is True


def test_permission_gated_actions(row):
    action = Action.make("delete", "Delete").can("delete users")

    assert action.should_render(row, None) is False
    assert action.should_render(row, FakeUser("view users")) is False
    assert action.should_render(row, FakeUser("delete users")) is True


def test_visibility_callbacks_receive_the_row(row):
    action = Action.make("activate", "Activate").show(lambda r: not r.is_active)
    assert action.is_visible(row) is False


def test_route_callbacks(row):
    assert Action.make("view", "View").route(lambda r: f"/users/{r.id}").resolve_route(row) == "/users/row-1"
    assert Action.make("noop", "Noop").resolve_route(row) is None


def test_modal_props_callbacks(row):
    action = Action.make("edit", "Edit").modal("users.edit", lambda r: {"user_id": r.id})
    assert action.resolve_modal_props(row) == {"user_id": "row-1"}
    assert action.to_dict()["has_modal"] is True


class TestConfirmationResolution:
    def test_default_message(self, row):
        action = Action.make("delete", "Delete").confirm()
        assert action.requires_confirmation() is True
        assert action.resolve_confirmation(row) == {"type": "message", "message": DEFAULT_CONFIRM_MESSAGE}

    def test_static_message(self, row):
        action = Action.make("delete", "Delete").confirm("Really?")
        assert action.resolve_confirmation(row) == {"type": "message", "message": "Really?"}
        assert action.to_dict()["confirm_message"] == "Really?"

    def test_callable_returning_a_string(self, row):
        action = Action.make("delete", "Delete").confirm(lambda r: f"Delete {r.name}?")
        assert action.resolve_confirmation(row)["message"] == "Delete Jane Doe?"

    def test_callable_returning_a_config(self, row):
        action = Action.make("delete", "Delete").confirm(lambda r: {"content": f"Delete {r.name}?"})
        confirmation = action.resolve_confirmation(row)

        assert confirmation["type"] == "config"
        assert confirmation["title"] == DEFAULT_CONFIRM_TITLE
        assert confirmation["content"] == "Delete Jane Doe?"
        assert confirmation["confirm_text"] == "Confirm"
        assert confirmation["cancel_text"] == "Cancel"

    def test_view_wins_over_message(self, row):
        action = Action.make("delete", "Delete").confirm("ignored").confirm_view("users.confirm", {"title": "Sure?"})
        assert action.resolve_confirmation(row) == {"type": "view", "view": "users.confirm", "props": {"title": "Sure?"}}

    def test_bulk_callbacks_receive_the_rows(self, row):
        action = BulkAction.make("delete", "Delete").confirm(lambda rows: f"Delete {len(rows)} rows?")
        assert action.resolve_confirmation([row, row])["message"] == "Delete 2 rows?"


def test_bulk_visibility_receives_the_user():
    action = BulkAction.make("export", "Export").show(lambda user: user is not None)
    assert action.should_render(None) is False
    assert action.should_render(FakeUser()) is True
