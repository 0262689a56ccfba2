"""
Events a DataTable dispatches to the client.

Event names match the browser-side listeners: per-table events carry the
table id as a suffix.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field

SCROLL_TO_TOP = "datatable-scroll-to-top"
OPEN_MODAL = "open-datatable-modal"
CONFIRM_MODAL = "confirm-modal"
REDIRECT = "redirect"
TOAST = "toast"


def action_confirmed_event(table_id: str) -> str:
    return f"datatable:action-confirmed:{table_id}"


def modal_closed_event(table_id: str) -> str:
    return f"datatable:modal-closed:{table_id}"


class DispatchedEvent(BaseModel):
    name: str
    payload: Dict[str, Any] = Field(default_factory=dict)
