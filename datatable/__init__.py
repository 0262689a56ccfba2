"""
Reusable server-driven DataTable: builders, state, query building,
pagination rendering and the confirmation flow.
"""

from datatable.builders import Action, BulkAction, Column, Filter
from datatable.confirmation import ActionModal, ConfirmationFlow, ModalOptions, PendingAction
from datatable.events import DispatchedEvent, action_confirmed_event, modal_closed_event
from datatable.pagination import build_pagination, filter_chips, page_window
from datatable.query import DataTableQueryBuilder, Page, QueryOptions
from datatable.registry import get_table_class, register_table, registered_tables
from datatable.state import DataTableState, StateOperation
from datatable.table import DataTable

__all__ = [
    "Action",
    "BulkAction",
    "Column",
    "Filter",
    "ActionModal",
    "ConfirmationFlow",
    "ModalOptions",
    "PendingAction",
    "DispatchedEvent",
    "action_confirmed_event",
    "modal_closed_event",
    "build_pagination",
    "filter_chips",
    "page_window",
    "DataTableQueryBuilder",
    "Page",
    "QueryOptions",
    "get_table_class",
    "register_table",
    "registered_tables",
    "DataTableState",
    "StateOperation",
    "DataTable",
]
