"""
Per-user DataTable preferences stored in users.datatable_preferences.

Stored keys per table: per_page, sort_by, sort_direction, filters.
"""

from typing import Any, Dict, Optional

import logfire
from sqlalchemy.orm import Session

from datatable.state import DataTableState, per_page_options

PREFERENCE_KEYS = ("per_page", "sort_by", "sort_direction", "filters")


class DataTablePreferences:
    """Read and write one user's saved state for a table."""

    def __init__(self, db: Session, user=None):
        self.db = db
        self.user = user

    def all(self, table_name: str) -> Dict[str, Any]:
        if self.user is None:
            return {}
        return dict((self.user.datatable_preferences or {}).get(table_name, {}))

    def get(self, table_name: str, key: str, default: Any = None) -> Any:
        return self.all(table_name).get(key, default)

    def save(self, table_name: str, state: DataTableState) -> None:
        """Persist the preference keys of a state. Does not commit."""
        if self.user is None:
            return
        preferences = dict(self.user.datatable_preferences or {})
        preferences[table_name] = {
            "per_page": state.per_page,
            "sort_by": state.sort_by,
            "sort_direction": state.sort_direction,
            "filters": state.active_filters(),
        }
        # Reassign so SQLAlchemy notices the JSON change
        self.user.datatable_preferences = preferences
        self.db.flush()
        logfire.debug("DataTable preferences saved", table=table_name, user_id=str(self.user.id))

    def apply(self, table_name: str, state: DataTableState, overrides: Optional[set] = None) -> DataTableState:
        """
        Fill a fresh state from saved preferences.

        Keys listed in overrides came from the query string and win over
        saved values.
        """
        overrides = overrides or set()
        saved = self.all(table_name)
        updates: Dict[str, Any] = {}

        if "sort_by" not in overrides and saved.get("sort_by"):
            updates["sort_by"] = saved["sort_by"]
        if "sort_direction" not in overrides and saved.get("sort_direction") in ("asc", "desc"):
            updates["sort_direction"] = saved["sort_direction"]
        if "per_page" not in overrides and saved.get("per_page") in per_page_options():
            updates["per_page"] = saved["per_page"]
        if "filters" not in overrides and isinstance(saved.get("filters"), dict) and saved["filters"]:
            updates["filters"] = dict(saved["filters"])

        return state.model_copy(update=updates) if updates else state
