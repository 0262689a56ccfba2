"""
Confirmation round-trip and the shared action modal.

ConfirmationFlow asks the table whether an action needs confirmation,
holds the pending action while the user decides, and re-dispatches it
exactly once when confirmed. ActionModal is the single modal shared by
every table on a page.
"""

from typing import Any, Dict, List, Optional

import logfire
from pydantic import BaseModel, Field

from datatable.builders import (
    DEFAULT_CANCEL_TEXT,
    DEFAULT_CONFIRM_MESSAGE,
    DEFAULT_CONFIRM_TEXT,
    DEFAULT_CONFIRM_TITLE,
)
from datatable.events import (
    CONFIRM_MODAL,
    DispatchedEvent,
    action_confirmed_event,
    modal_closed_event,
)

CONFIRM_DIALOG_VIEW = "components.confirm-dialog-body"


class PendingAction(BaseModel):
    """Payload of the action-confirmed event."""

    action_key: str
    row_id: Optional[str] = None
    is_bulk: bool = False


class ModalOptions(BaseModel):
    view_path: Optional[str] = None
    view_type: str = "view"
    view_props: Dict[str, Any] = Field(default_factory=dict)
    view_title: Optional[str] = None
    datatable_id: Optional[str] = None


def confirmation_copy(confirmation: Dict[str, Any]) -> Dict[str, Any]:
    """Normalise any confirmation shape into title/message/labels for a dialog."""
    kind = confirmation.get("type", "message")
    if kind == "config":
        return {
            "title": confirmation.get("title") or DEFAULT_CONFIRM_TITLE,
            "message": confirmation.get("content", ""),
            "confirm_text": confirmation.get("confirm_text") or DEFAULT_CONFIRM_TEXT,
            "cancel_text": confirmation.get("cancel_text") or DEFAULT_CANCEL_TEXT,
        }
    if kind == "view":
        props = confirmation.get("props", {})
        return {
            "title": props.get("title", DEFAULT_CONFIRM_TITLE),
            "message": props.get("content", ""),
            "confirm_text": props.get("confirm_text", DEFAULT_CONFIRM_TEXT),
            "cancel_text": props.get("cancel_text", DEFAULT_CANCEL_TEXT),
            "view": confirmation.get("view"),
            "props": props,
        }
    return {
        "title": DEFAULT_CONFIRM_TITLE,
        "message": confirmation.get("message") or DEFAULT_CONFIRM_MESSAGE,
        "confirm_text": DEFAULT_CONFIRM_TEXT,
        "cancel_text": DEFAULT_CANCEL_TEXT,
    }


class ConfirmationFlow:
    """
    Gate an action behind an optional confirmation dialog.

    Usage:
        flow = ConfirmationFlow(table)
        outcome = flow.request("delete", row_id)
        if outcome["status"] == "pending":
            ...  # show flow.events[-1] to the user
            flow.confirm()
    """

    def __init__(self, table, pending: Optional[PendingAction] = None):
        self.table = table
        self.pending = pending
        self.events: List[DispatchedEvent] = []

    def request(self, action_key: str, row_id: Optional[str] = None, is_bulk: bool = False) -> Dict[str, Any]:
        if is_bulk:
            confirmation = self.table.get_bulk_action_confirmation(action_key)
        else:
            confirmation = self.table.get_action_confirmation(action_key, row_id)

        action = PendingAction(action_key=action_key, row_id=row_id, is_bulk=is_bulk)

        if not confirmation.get("required"):
            return {"status": "executed", "result": self._dispatch(action)}

        self.pending = action
        payload = confirmation_copy(confirmation)
        payload.update({
            "confirm_event": action_confirmed_event(self.table.table_id),
            "confirm_data": action.model_dump(),
        })
        self.events.append(DispatchedEvent(name=CONFIRM_MODAL, payload=payload))
        logfire.info("Action awaiting confirmation", table=self.table.table_id, action=action_key, is_bulk=is_bulk)
        return {"status": "pending", "confirmation": payload}

    def confirm(self, data: Optional[PendingAction] = None) -> Dict[str, Any]:
        """Run the pending (or given) action once. Confirming with nothing pending is a no-op."""
        action = data or self.pending
        self.pending = None
        if action is None:
            return {"status": "idle"}
        return {"status": "executed", "result": self._dispatch(action)}

    def cancel(self) -> Dict[str, Any]:
        if self.pending is not None:
            logfire.info("Action confirmation cancelled", table=self.table.table_id, action=self.pending.action_key)
        self.pending = None
        return {"status": "cancelled"}

    def _dispatch(self, action: PendingAction):
        return self.table.on_action_confirmed(action)


class ActionModal:
    """
    State of the shared action modal.

    open_modal() fills it from ModalOptions; confirm() dispatches the
    action-confirmed event for the owning table and closes; close_modal()
    dispatches modal-closed and resets.
    """

    def __init__(self):
        self.events: List[DispatchedEvent] = []
        self._reset()

    def _reset(self) -> None:
        self.modal_view: Optional[str] = None
        self.modal_props: Dict[str, Any] = {}
        self.modal_type = "view"
        self.modal_title: Optional[str] = None
        self.datatable_id: Optional[str] = None
        self.is_open = False

    def open_modal(self, options) -> None:
        if isinstance(options, dict):
            options = ModalOptions(**options)

        if options.view_type == "confirm":
            props = options.view_props
            title = options.view_title or props.get("title") or DEFAULT_CONFIRM_TITLE
            view_props = {
                "title": title,
                "content": props.get("content", ""),
                "confirm_label": props.get("confirm_label", DEFAULT_CONFIRM_TEXT),
                "cancel_label": props.get("cancel_label", DEFAULT_CANCEL_TEXT),
                "action_key": props.get("action_key"),
                "row_id": props.get("row_id"),
                "is_bulk": props.get("is_bulk", False),
            }
            view_props.update(props)
            self.modal_view = options.view_path or CONFIRM_DIALOG_VIEW
            self.modal_type = "view"
            self.modal_title = title
            self.modal_props = view_props
        else:
            self.modal_view = options.view_path
            self.modal_type = options.view_type
            self.modal_title = options.view_title
            self.modal_props = dict(options.view_props)

        self.datatable_id = options.datatable_id
        self.is_open = True

    def confirm(self) -> Optional[DispatchedEvent]:
        event = None
        if self.datatable_id:
            event = DispatchedEvent(
                name=action_confirmed_event(self.datatable_id),
                payload={
                    "action_key": self.modal_props.get("action_key"),
                    "row_id": self.modal_props.get("row_id"),
                    "is_bulk": self.modal_props.get("is_bulk", False),
                },
            )
            self.events.append(event)
        self.close_modal()
        return event

    def close_modal(self) -> None:
        if self.datatable_id:
            self.events.append(DispatchedEvent(name=modal_closed_event(self.datatable_id)))
        self._reset()

    def to_dict(self) -> dict:
        return {
            "is_open": self.is_open,
            "view": self.modal_view,
            "type": self.modal_type,
            "title": self.modal_title,
            "props": self.modal_props,
            "datatable_id": self.datatable_id,
        }
