"""
Request bodies for the DataTable endpoints.

Every request carries the client's current state snapshot; responses are
the rendered table built from the new state.
"""

from typing import Optional

from pydantic import BaseModel, Field

from datatable import DataTableState, PendingAction, StateOperation


class DataTableRequest(BaseModel):
    state: DataTableState = Field(default_factory=DataTableState)


class StateRequest(DataTableRequest):
    operation: StateOperation


class ActionRequest(DataTableRequest):
    row_id: Optional[str] = None


class ConfirmRequest(DataTableRequest):
    """Sent when the user accepts a confirmation dialog."""

    action: PendingAction
