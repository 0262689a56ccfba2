"""
DataTable base class.

A subclass declares its base query, columns, filters and actions. An
instance wraps one request: it receives the client's state snapshot,
applies an operation, resolves actions, and renders the view model
returned to the client. Nothing is kept between requests.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

import logfire
from sqlalchemy.orm import Query, Session

from datatable.builders import Action, BulkAction, Column, Filter
from datatable.confirmation import ModalOptions, PendingAction
from datatable.events import OPEN_MODAL, REDIRECT, SCROLL_TO_TOP, DispatchedEvent
from datatable.pagination import build_pagination, filter_chips
from datatable.preferences import DataTablePreferences
from datatable.query import DataTableQueryBuilder, Page, QueryOptions, validate_date_range
from datatable.state import DataTableState, StateOperation, dedupe, is_empty_filter_value, per_page_options
from services.exceptions import InvalidOperationError, PermissionDeniedError
from services.notifications import NotificationBuilder
from utils.uuid_helpers import ensure_uuid


class DataTable:
    """
    Base class for server-driven tables.

    Subclasses set `name` and `model` and implement base_query() and
    columns(). filters(), row_actions(), bulk_actions() and row_click()
    are optional.
    """

    name: str = ""
    model: Any = None
    # Permission needed to open the table at all
    permission: Optional[str] = None
    default_sort_by: Optional[str] = None
    default_sort_direction: str = "asc"

    def __init__(self, db: Session, user=None, state: Optional[DataTableState] = None):
        self.db = db
        self.user = user
        self.state = state.model_copy(deep=True) if state is not None else self.default_state()
        self.events: List[DispatchedEvent] = []
        self.toasts: List[dict] = []
        self.preferences = DataTablePreferences(db, user)
        self.query_builder = DataTableQueryBuilder()
        self._page: Optional[Page] = None
        self._memo: Dict[str, Any] = {}

    # ========================================================================
    # Definition hooks
    # ========================================================================

    def base_query(self) -> Query:
        raise NotImplementedError

    def columns(self) -> List[Column]:
        raise NotImplementedError

    def filters(self) -> List[Filter]:
        return []

    def row_actions(self) -> List[Action]:
        return []

    def bulk_actions(self) -> List[BulkAction]:
        return []

    def row_click(self, row) -> Optional[Action]:
        """Return the action a row click triggers, or None when rows are not clickable."""
        return None

    # ========================================================================
    # Construction
    # ========================================================================

    @property
    def table_id(self) -> str:
        return self.name

    def default_state(self) -> DataTableState:
        return DataTableState(sort_by=self.default_sort_by, sort_direction=self.default_sort_direction)

    @classmethod
    def open(cls, db: Session, user=None, overrides: Optional[Dict[str, Any]] = None) -> "DataTable":
        """
        Build a table for a first visit.

        Saved preferences are applied, then query-string overrides; when any
        override is given the resulting preferences are saved.
        """
        table = cls(db, user)
        overrides = {key: value for key, value in (overrides or {}).items() if value is not None}
        state = table.preferences.apply(cls.name, table.state, overrides=set(overrides))
        if overrides:
            state = DataTableState(**{**state.model_dump(), **overrides})
        table.state = state
        if overrides:
            table.save_preferences()
        return table

    # ========================================================================
    # Memoised definitions
    # ========================================================================

    def _memoize(self, key: str, factory):
        if key not in self._memo:
            self._memo[key] = factory()
        return self._memo[key]

    def get_columns(self) -> List[Column]:
        return self._memoize("columns", self.columns)

    def get_filters(self) -> List[Filter]:
        return self._memoize("filters", lambda: [f for f in self.filters() if f.is_visible()])

    def get_row_actions(self) -> List[Action]:
        return self._memoize("row_actions", self.row_actions)

    def get_bulk_actions(self) -> List[BulkAction]:
        """Bulk actions the acting user may see."""
        return self._memoize(
            "bulk_actions",
            lambda: [action for action in self.bulk_actions() if action.should_render(self.user)],
        )

    def get_row_actions_for_row(self, row) -> List[Action]:
        return [action for action in self.get_row_actions() if action.should_render(row, self.user)]

    def sortable_fields(self) -> List[str]:
        return [column.field for column in self.get_columns() if column.is_sortable()]

    def has_filters(self) -> bool:
        return len(self.get_filters()) > 0

    def rows_are_clickable(self) -> bool:
        return type(self).row_click is not DataTable.row_click

    # ========================================================================
    # Rows
    # ========================================================================

    @property
    def rows(self) -> Page:
        if self._page is None:
            self._page = self.query_builder.build(QueryOptions(
                query=self.base_query(),
                model=self.model,
                columns=self.get_columns(),
                filters=self.get_filters(),
                filter_values=self.state.filters,
                search=self.state.search,
                sort_by=self.state.sort_by,
                sort_direction=self.state.sort_direction,
                page=self.state.page,
                per_page=self.state.per_page,
            ))
            # Out-of-range pages are clamped by the query builder
            self.state.page = self._page.page
        return self._page

    def refresh(self) -> None:
        self._page = None
        for filter_ in self.get_filters():
            filter_.clear_resolved_options()

    def current_page_ids(self) -> List[str]:
        return [str(row.id) for row in self.rows.items]

    def find_row(self, row_id: Optional[str]):
        """Look up a row by id on the loaded page first, then through the base query."""
        if not row_id:
            return None
        try:
            uuid = ensure_uuid(row_id)
        except ValueError:
            return None

        if self._page is not None:
            for row in self._page.items:
                if row.id == uuid:
                    return row
        return self.base_query().filter(self.model.id == uuid).first()

    def selected_rows(self) -> list:
        """Selected rows that still match the base query."""
        ids: List[UUID] = []
        for value in self.state.selected:
            try:
                ids.append(ensure_uuid(value))
            except ValueError:
                continue
        if not ids:
            return []
        return self.base_query().filter(self.model.id.in_(ids)).all()

    # ========================================================================
    # State operations
    # ========================================================================

    def set_filter(self, key: str, value: Any) -> None:
        filter_ = next((f for f in self.get_filters() if f.key == key), None)
        if filter_ is None:
            raise InvalidOperationError(f"Unknown filter '{key}'")
        if filter_.filter_type == "date_range" and not is_empty_filter_value(value):
            validate_date_range(value)
        filters = dict(self.state.filters)
        filters[key] = value
        self.state.filters = {k: v for k, v in filters.items() if k != key or not is_empty_filter_value(v)}
        self._after_filter_change()

    def remove_filter(self, key: str) -> None:
        filters = dict(self.state.filters)
        filters.pop(key, None)
        self.state.filters = filters
        self._after_filter_change()

    def clear_filters(self) -> None:
        self.state.filters = {}
        self._after_filter_change()

    def _after_filter_change(self) -> None:
        self.state.page = 1
        self.refresh()
        self.save_preferences()

    def set_search(self, term: Optional[str]) -> None:
        self.state.search = (term or "").strip()
        self.state.page = 1
        self.refresh()

    def sort(self, field: str) -> None:
        if field not in self.sortable_fields():
            return
        if self.state.sort_by == field:
            self.state.sort_direction = "desc" if self.state.sort_direction == "asc" else "asc"
        else:
            self.state.sort_by = field
            self.state.sort_direction = "asc"
        self.state.page = 1
        self.refresh()
        self.save_preferences()

    def goto_page(self, page: int) -> None:
        last = self.rows.last_page
        self.state.page = min(max(1, int(page)), last)
        self.refresh()
        self.dispatch(SCROLL_TO_TOP)

    def next_page(self) -> None:
        self.goto_page(self.state.page + 1)

    def previous_page(self) -> None:
        self.goto_page(self.state.page - 1)

    def first_page(self) -> None:
        self.goto_page(1)

    def last_page(self) -> None:
        self.goto_page(self.rows.last_page)

    def set_per_page(self, per_page: int) -> None:
        options = per_page_options()
        if per_page not in options:
            raise InvalidOperationError(f"Rows per page must be one of {options}")
        self.state.per_page = per_page
        self.state.page = 1
        self.refresh()
        self.save_preferences()

    def is_selected(self, row_id: str) -> bool:
        return str(row_id) in self.state.selected

    def toggle_row(self, row_id: str) -> None:
        row_id = str(row_id)
        if self.is_selected(row_id):
            self.state.selected = [value for value in self.state.selected if value != row_id]
        else:
            self.state.selected = dedupe(self.state.selected + [row_id])

    def is_all_selected(self) -> bool:
        if not self.state.selected:
            return False
        page_ids = self.current_page_ids()
        if not page_ids:
            return False
        return all(row_id in self.state.selected for row_id in page_ids)

    def toggle_select_all(self) -> None:
        page_ids = self.current_page_ids()
        if self.is_all_selected():
            self.state.selected = [value for value in self.state.selected if value not in page_ids]
        else:
            self.state.selected = dedupe(self.state.selected + page_ids)

    def clear_selection(self) -> None:
        self.state.selected = []

    def apply_operation(self, operation: StateOperation) -> None:
        """Dispatch one client-requested state change."""
        op = operation.op
        with logfire.span("datatable.state", table=self.table_id, op=op):
            if op == "set_filter":
                self.set_filter(_require(operation.key, "key"), operation.value)
            elif op == "remove_filter":
                self.remove_filter(_require(operation.key, "key"))
            elif op == "clear_filters":
                self.clear_filters()
            elif op == "set_search":
                self.set_search(operation.value)
            elif op == "sort":
                self.sort(_require(operation.field, "field"))
            elif op == "goto_page":
                self.goto_page(_require(operation.page, "page"))
            elif op == "next_page":
                self.next_page()
            elif op == "previous_page":
                self.previous_page()
            elif op == "first_page":
                self.first_page()
            elif op == "last_page":
                self.last_page()
            elif op == "set_per_page":
                self.set_per_page(_require(operation.per_page, "per_page"))
            elif op == "toggle_row":
                self.toggle_row(_require(operation.row_id, "row_id"))
            elif op == "toggle_select_all":
                self.toggle_select_all()
            elif op == "clear_selection":
                self.clear_selection()

    def save_preferences(self) -> None:
        self.preferences.save(self.name, self.state)

    # ========================================================================
    # Actions
    # ========================================================================

    def find_row_action(self, key: str) -> Optional[Action]:
        return next((action for action in self.get_row_actions() if action.key == key), None)

    def find_bulk_action(self, key: str) -> Optional[BulkAction]:
        return next((action for action in self.bulk_actions() if action.key == key), None)

    def get_action_confirmation(self, key: str, row_id: Optional[str]) -> dict:
        action = self.find_row_action(key)
        row = self.find_row(row_id)
        if action is None or row is None or not action.requires_confirmation():
            return {"required": False}
        if not action.should_render(row, self.user):
            return {"required": False}
        return {"required": True, **action.resolve_confirmation(row)}

    def get_bulk_action_confirmation(self, key: str) -> dict:
        action = self.find_bulk_action(key)
        if action is None or not action.requires_confirmation() or not action.should_render(self.user):
            return {"required": False}
        return {"required": True, **action.resolve_confirmation(self.selected_rows())}

    def execute_action(self, key: str, row_id: Optional[str]) -> dict:
        """
        Resolve a row action to exactly one outcome.

        Precedence is modal, then route, then execute. Unknown actions,
        missing rows and hidden actions are no-ops.

        Raises:
            PermissionDeniedError: the action requires a permission the user lacks
        """
        action = self.find_row_action(key)
        row = self.find_row(row_id)
        if action is None or row is None:
            return {"type": "noop"}
        return self._resolve(action, row)

    def handle_row_click(self, row_id: str) -> dict:
        row = self.find_row(row_id)
        if row is None:
            return {"type": "noop"}
        action = self.row_click(row)
        if action is None:
            return {"type": "noop"}
        return self._resolve(action, row)

    def _resolve(self, action: Action, row) -> dict:
        if not action.is_authorized(self.user):
            raise PermissionDeniedError(action.permission)
        if not action.is_visible(row):
            return {"type": "noop"}

        if action.modal_view is not None:
            options = self.open_modal_for_action(action, row)
            return {"type": "modal", "modal": options.model_dump()}

        url = action.resolve_route(row)
        if url is not None:
            self.dispatch(REDIRECT, {"url": url})
            return {"type": "navigate", "url": url}

        if action.execute_callback is not None:
            with logfire.span("datatable.action", table=self.table_id, action=action.key, row_id=str(row.id)):
                result = action.execute_callback(row)
            self.refresh()
            return {"type": "mutate", "action": action.key, "result": result}

        return {"type": "noop"}

    def open_modal_for_action(self, action: Action, row) -> ModalOptions:
        options = ModalOptions(
            view_path=action.modal_view,
            view_type=action.modal_type,
            view_props=action.resolve_modal_props(row),
            datatable_id=self.table_id,
        )
        self.dispatch(OPEN_MODAL, options.model_dump())
        return options

    def execute_bulk_action(self, key: str) -> dict:
        """Run a bulk action on the selected rows, then clear the selection."""
        action = self.find_bulk_action(key)
        if action is None or action.execute_callback is None or not self.state.selected:
            return {"type": "noop"}
        if not action.is_authorized(self.user):
            raise PermissionDeniedError(action.permission)
        if not action.is_visible(self.user):
            return {"type": "noop"}

        rows = self.selected_rows()
        with logfire.span("datatable.bulk_action", table=self.table_id, action=key, rows=len(rows)):
            result = action.execute_callback(rows)
        self.clear_selection()
        self.refresh()
        return {"type": "mutate", "action": key, "affected": len(rows), "result": result}

    def on_action_confirmed(self, payload: PendingAction) -> dict:
        """Handler for the action-confirmed event."""
        if not payload.action_key:
            return {"type": "noop"}
        if payload.is_bulk:
            return self.execute_bulk_action(payload.action_key)
        if payload.row_id:
            return self.execute_action(payload.action_key, payload.row_id)
        return {"type": "noop"}

    # ========================================================================
    # Feedback
    # ========================================================================

    def dispatch(self, name: str, payload: Optional[dict] = None) -> None:
        self.events.append(DispatchedEvent(name=name, payload=payload or {}))

    def notify(self, title: str, level: str = "success", content: Optional[str] = None) -> None:
        builder = NotificationBuilder.make(title).level(level)
        if content:
            builder.content(content)
        self.toasts.append(builder.toast())

    # ========================================================================
    # Rendering
    # ========================================================================

    def render_row(self, row) -> dict:
        row_id = str(row.id)
        return {
            "id": row_id,
            "cells": {
                column.field: column.resolve_value(row)
                for column in self.get_columns()
                if not column.is_hidden(row)
            },
            "actions": [action.to_dict() for action in self.get_row_actions_for_row(row)],
            "selected": self.is_selected(row_id),
        }

    def render(self) -> dict:
        with logfire.span("datatable.render", table=self.table_id):
            page = self.rows
            return {
                "id": self.table_id,
                "state": self.state.model_dump(),
                "columns": [column.to_dict() for column in self.get_columns() if not column.is_hidden()],
                "rows": [self.render_row(row) for row in page.items],
                "pagination": build_pagination(page),
                "per_page_options": per_page_options(),
                "filters": [filter_.to_dict() for filter_ in self.get_filters()],
                "active_filters": filter_chips(self.get_filters(), self.state.filters),
                "bulk_actions": [action.to_dict() for action in self.get_bulk_actions()],
                "selection": {
                    "count": len(self.state.selected),
                    "all_selected": self.is_all_selected(),
                },
                "rows_clickable": self.rows_are_clickable(),
                "events": [event.model_dump() for event in self.events],
                "toasts": list(self.toasts),
            }


def _require(value, name: str):
    if value is None:
        raise InvalidOperationError(f"Missing '{name}' for this operation")
    return value
