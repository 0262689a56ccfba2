"""
DataTable endpoints.

The client holds the table state and sends it with every request. Each
endpoint rebuilds the table from that snapshot, applies one interaction
and answers with the rendered table (rows, pagination, filter chips,
events and toasts) built from the resulting state.
"""

from typing import List, Optional, Type

import logfire
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from api.dependencies import get_current_user
from api.errors import http_error
from database import get_db
from datatable import ConfirmationFlow, DataTable, DataTableState, get_table_class, registered_tables
from models.user import User
from schemas.datatables import ActionRequest, ConfirmRequest, DataTableRequest, StateRequest
from services.exceptions import AdminError

# Importing the package registers every table
import tables  # noqa: F401


router = APIRouter(prefix="/api/datatables", tags=["DataTables"])


def _table_class(name: str, user: User) -> Type[DataTable]:
    """
    Raises:
        HTTPException 404: If no table is registered under this name
        HTTPException 403: If the user may not open the table
    """
    try:
        table_cls = get_table_class(name)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown table '{name}'")

    if table_cls.permission and not user.has_permission(table_cls.permission):
        logfire.warning("DataTable access denied", table=name, user_id=str(user.id))
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Missing permission: {table_cls.permission}")
    return table_cls


def _build(name: str, state: DataTableState, user: User, db: Session) -> DataTable:
    return _table_class(name, user)(db, user, state)


def _respond(db: Session, table: DataTable, **extra) -> dict:
    """Render, then commit whatever the interaction changed (rows, preferences)."""
    rendered = table.render()
    db.commit()
    return {**extra, "table": rendered}


@router.get("/")
async def list_tables(current_user: User = Depends(get_current_user)) -> List[str]:
    return registered_tables()


@router.get("/{table_name}")
async def open_table(
    table_name: str,
    sort_by: Optional[str] = Query(default=None),
    sort_direction: Optional[str] = Query(default=None, pattern="^(asc|desc)$"),
    per_page: Optional[int] = Query(default=None),
    search: Optional[str] = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    First visit: the default state merged with the user's saved preferences.

    Query parameters win over saved preferences and are saved in turn.

    Raises:
        HTTPException 404: If the table does not exist
        HTTPException 403: If the user may not open the table
        HTTPException 422: If per_page is not an allowed option
    """
    table_cls = _table_class(table_name, current_user)
    overrides = {"sort_by": sort_by, "sort_direction": sort_direction, "per_page": per_page, "search": search}
    with logfire.span("api.datatable.open", table=table_name, user_id=str(current_user.id)):
        try:
            table = table_cls.open(db, current_user, overrides)
        except ValidationError as e:
            db.rollback()
            raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False, include_input=False))
        return _respond(db, table)["table"]


@router.post("/{table_name}/render")
async def render_table(
    table_name: str,
    request: DataTableRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Re-render a snapshot as-is."""
    table = _build(table_name, request.state, current_user, db)
    return table.render()


@router.post("/{table_name}/state")
async def change_state(
    table_name: str,
    request: StateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Apply one state operation (filter, search, sort, page, per-page, selection).

    Raises:
        HTTPException 400: If the operation is invalid (unknown filter, per_page not allowed, missing argument)
    """
    table = _build(table_name, request.state, current_user, db)
    try:
        table.apply_operation(request.operation)
        return _respond(db, table)["table"]
    except AdminError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{table_name}/actions/{action_key}/confirmation")
async def request_action(
    table_name: str,
    action_key: str,
    request: ActionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Ask to run a row action.

    Actions without confirmation run immediately (status "executed").
    Otherwise the response has status "pending" and a confirm-modal event;
    the client answers with POST /confirm.

    Raises:
        HTTPException 403: If the action needs a permission the user lacks
    """
    table = _build(table_name, request.state, current_user, db)
    with logfire.span("api.datatable.request_action", table=table_name, action=action_key, row_id=request.row_id):
        try:
            outcome = ConfirmationFlow(table).request(action_key, request.row_id)
            return _respond(db, table, outcome=outcome)
        except AdminError as e:
            db.rollback()
            raise http_error(e)


@router.post("/{table_name}/actions/{action_key}/execute")
async def execute_action(
    table_name: str,
    action_key: str,
    request: ActionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Run a row action without asking for confirmation.

    Returns the outcome ("modal", "navigate", "mutate" or "noop") and the re-rendered table.

    Raises:
        HTTPException 403: If the action needs a permission the user lacks
        HTTPException 400: If the action itself rejects the row
    """
    table = _build(table_name, request.state, current_user, db)
    with logfire.span("api.datatable.execute_action", table=table_name, action=action_key, row_id=request.row_id):
        try:
            result = table.execute_action(action_key, request.row_id)
            return _respond(db, table, result=result)
        except AdminError as e:
            db.rollback()
            raise http_error(e)


@router.post("/{table_name}/bulk-actions/{action_key}/confirmation")
async def request_bulk_action(
    table_name: str,
    action_key: str,
    request: DataTableRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Ask to run a bulk action on the selected rows. Same outcomes as the row variant."""
    table = _build(table_name, request.state, current_user, db)
    with logfire.span("api.datatable.request_bulk_action", table=table_name, action=action_key):
        try:
            outcome = ConfirmationFlow(table).request(action_key, is_bulk=True)
            return _respond(db, table, outcome=outcome)
        except AdminError as e:
            db.rollback()
            raise http_error(e)


@router.post("/{table_name}/bulk-actions/{action_key}/execute")
async def execute_bulk_action(
    table_name: str,
    action_key: str,
    request: DataTableRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Run a bulk action on the selected rows, then clear the selection.

    Raises:
        HTTPException 403: If the action needs a permission the user lacks
    """
    table = _build(table_name, request.state, current_user, db)
    with logfire.span("api.datatable.execute_bulk_action", table=table_name, action=action_key,
                      selected=len(request.state.selected)):
        try:
            result = table.execute_bulk_action(action_key)
            return _respond(db, table, result=result)
        except AdminError as e:
            db.rollback()
            raise http_error(e)


@router.post("/{table_name}/row-click")
async def row_click(
    table_name: str,
    request: ActionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Resolve the table's row-click action for one row."""
    table = _build(table_name, request.state, current_user, db)
    try:
        result = table.handle_row_click(request.row_id)
        return _respond(db, table, result=result)
    except AdminError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{table_name}/confirm")
async def confirm_action(
    table_name: str,
    request: ConfirmRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    The user accepted a confirmation dialog: run the pending action once.

    Raises:
        HTTPException 403: If the action needs a permission the user lacks
    """
    table = _build(table_name, request.state, current_user, db)
    with logfire.span("api.datatable.confirm", table=table_name, action=request.action.action_key,
                      is_bulk=request.action.is_bulk):
        try:
            outcome = ConfirmationFlow(table, pending=request.action).confirm()
            return _respond(db, table, outcome=outcome)
        except AdminError as e:
            db.rollback()
            raise http_error(e)
