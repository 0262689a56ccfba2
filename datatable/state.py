"""
DataTable state snapshot and the operations a client may request.

The snapshot travels with every request; the server applies one operation
and returns the new snapshot.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from config import settings


SortDirection = Literal["asc", "desc"]

StateOperationName = Literal[
    "set_filter",
    "remove_filter",
    "clear_filters",
    "set_search",
    "sort",
    "goto_page",
    "next_page",
    "previous_page",
    "first_page",
    "last_page",
    "set_per_page",
    "toggle_row",
    "toggle_select_all",
    "clear_selection",
]


def per_page_options() -> List[int]:
    return list(settings.datatable_per_page_options)


def dedupe(values: List[str]) -> List[str]:
    """Drop duplicates while keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class DataTableState(BaseModel):
    """Serialised table state: filters, search, sort, pagination and selection."""

    filters: Dict[str, Any] = Field(default_factory=dict)
    search: str = ""
    sort_by: Optional[str] = None
    sort_direction: SortDirection = "asc"
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default_factory=lambda: settings.datatable_default_per_page)
    selected: List[str] = Field(default_factory=list)

    @field_validator("per_page")
    @classmethod
    def validate_per_page(cls, v: int) -> int:
        options = per_page_options()
        if v not in options:
            raise ValueError(f"per_page must be one of {options}")
        return v

    @field_validator("selected")
    @classmethod
    def validate_selected(cls, v: List[str]) -> List[str]:
        return dedupe([str(item) for item in v])

    @field_validator("search")
    @classmethod
    def strip_search(cls, v: str) -> str:
        return v.strip()

    def active_filters(self) -> Dict[str, Any]:
        """Filters that actually constrain the query."""
        return {key: value for key, value in self.filters.items() if not is_empty_filter_value(value)}


def is_empty_filter_value(value: Any) -> bool:
    if value is None or value == "":
        return True
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return True
    if isinstance(value, dict) and not any(v not in (None, "") for v in value.values()):
        return True
    return False


class StateOperation(BaseModel):
    """
    One state change requested by the client.

    Which fields are read depends on `op`:
        set_filter: key, value
        remove_filter: key
        set_search: value
        sort: field
        goto_page: page
        set_per_page: per_page
        toggle_row: row_id
    """

    op: StateOperationName
    key: Optional[str] = None
    value: Any = None
    field: Optional[str] = None
    page: Optional[int] = None
    per_page: Optional[int] = None
    row_id: Optional[str] = None
