"""
Tests for the confirmation round-trip and the shared action modal,
using a stand-in table that records dispatched actions.
"""

import pytest

from datatable import ActionModal, ConfirmationFlow, PendingAction
from datatable.events import CONFIRM_MODAL, action_confirmed_event, modal_closed_event
from schemas.datatables import ConfirmRequest


pytestmark = pytest.mark.unit


class RecordingTable:
    table_id = "users"

    def __init__(self, confirmation):
        self.confirmation = confirmation
        self.dispatched = []

    def get_action_confirmation(self, key, row_id):
        return self.confirmation

    def get_bulk_action_confirmation(self, key):
        return self.confirmation

    def on_action_confirmed(self, action):
        self.dispatched.append(action)
        return {"type": "mutate", "action": action.action_key}


# ===================================================================
# TESTS - ConfirmationFlow
# ===================================================================

def test_actions_without_confirmation_run_immediately():
    table = RecordingTable({"required": False})
    outcome = ConfirmationFlow(table).request("activate", "row-1")

    assert outcome["status"] == "executed"
    assert table.dispatched == [PendingAction(action_key="activate", row_id="row-1")]


def test_confirmation_is_pending_until_confirmed():
    table = RecordingTable({"required": True, "type": "message", "message": "Delete?"})
    flow = ConfirmationFlow(table)

    outcome = flow.request("delete", "row-1")

    assert outcome["status"] == "pending"
    assert outcome["confirmation"]["message"] == "Delete?"
    assert outcome["confirmation"]["confirm_event"] == action_confirmed_event("users")
    assert outcome["confirmation"]["confirm_data"] == {"action_key": "delete", "row_id": "row-1", "is_bulk": False}
    assert flow.events[-1].name == CONFIRM_MODAL
    assert table.dispatched == []

    assert flow.confirm()["status"] == "executed"
    assert len(table.dispatched) == 1


def test_confirm_runs_the_action_exactly_once():
    table = RecordingTable({"required": True, "type": "message", "message": "Delete?"})
    flow = ConfirmationFlow(table)
    flow.request("delete", "row-1")

    flow.confirm()
    assert flow.confirm() == {"status": "idle"}
    assert len(table.dispatched) == 1


def test_cancel_drops_the_pending_action():
    table = RecordingTable({"required": True, "type": "message", "message": "Delete?"})
    flow = ConfirmationFlow(table)
    flow.request("delete", "row-1", is_bulk=False)

    assert flow.cancel() == {"status": "cancelled"}
    assert flow.confirm() == {"status": "idle"}
    assert table.dispatched == []


def test_config_confirmation_copy():
    table = RecordingTable({
        "required": True,
        "type": "config",
        "title": "Delete user",
        "content": "This cannot be undone.",
        "confirm_text": "Delete",
        "cancel_text": "Keep",
    })
    outcome = ConfirmationFlow(table).request("delete", is_bulk=True)

    confirmation = outcome["confirmation"]
    assert confirmation["title"] == "Delete user"
    assert confirmation["message"] == "This cannot be undone."
    assert confirmation["confirm_text"] == "Delete"
    assert confirmation["cancel_text"] == "Keep"
    assert confirmation["confirm_data"]["is_bulk"] is True


def test_confirm_with_a_carried_payload():
    table = RecordingTable({"required": True})
    flow = ConfirmationFlow(table, pending=PendingAction(action_key="archive", row_id="row-9"))

    assert flow.confirm()["result"] == {"type": "mutate", "action": "archive"}
    assert table.dispatched[0].row_id == "row-9"


# ===================================================================
# TESTS - ActionModal
# ===================================================================

def test_view_modal_keeps_its_props():
    modal = ActionModal()
    modal.open_modal({"view_path": "users.edit-user", "view_props": {"user_id": "1"}, "datatable_id": "users"})

    state = modal.to_dict()
    assert state["is_open"] is True
    assert state["view"] == "users.edit-user"
    assert state["props"] == {"user_id": "1"}


def test_confirm_modal_dispatches_confirmed_then_closed():
    modal = ActionModal()
    modal.open_modal({
        "view_type": "confirm",
        "view_props": {"title": "Delete?", "action_key": "delete", "row_id": "row-1"},
        "datatable_id": "users",
    })

    assert modal.modal_title == "Delete?"
    assert modal.modal_props["confirm_label"] == "Confirm"

    event = modal.confirm()

    assert event.name == action_confirmed_event("users")
    assert event.payload == {"action_key": "delete", "row_id": "row-1", "is_bulk": False}
    assert [e.name for e in modal.events] == [action_confirmed_event("users"), modal_closed_event("users")]
    assert modal.is_open is False
    assert modal.modal_view is None


def test_closing_a_modal_without_a_table_dispatches_nothing():
    modal = ActionModal()
    modal.open_modal({"view_path": "some.view"})
    modal.close_modal()

    assert modal.events == []
    assert modal.is_open is False


def test_confirm_request_carries_the_snapshot_and_the_pending_action():
    request = ConfirmRequest(action={"action_key": "delete", "row_id": "row-1"}, data={"ignored": True})

    assert set(ConfirmRequest.model_fields) == {"state", "action"}
    assert request.action == PendingAction(action_key="delete", row_id="row-1")
