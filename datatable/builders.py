"""
Fluent builders describing a DataTable: columns, filters, row actions and
bulk actions.

Builders are plain configuration objects. They never touch the database
themselves; DataTableQueryBuilder and DataTable read them.
"""

import re
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

DEFAULT_CONFIRM_TITLE = "Confirm"
DEFAULT_CONFIRM_MESSAGE = "Are you sure you want to perform this action?"
DEFAULT_CONFIRM_TEXT = "Confirm"
DEFAULT_CANCEL_TEXT = "Cancel"
DEFAULT_FILTER_PLACEHOLDER = "All"

FILTER_TYPES = ("select", "multiselect", "boolean", "date_range")


def _snake(label: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", label.strip().lower()).strip("_")


def _read_path(obj: Any, path: str) -> Any:
    """
    Resolve a dotted attribute path on a row.

    Collections along the way are flattened into a list, so "roles.name"
    on a user yields the list of role names.
    """
    current = obj
    for part in path.split("."):
        if current is None:
            return None
        if isinstance(current, (list, tuple, set)):
            current = [getattr(item, part, None) for item in current]
        else:
            current = getattr(current, part, None)
    return current


# ============================================================================
# Columns
# ============================================================================

class Column:
    """A displayed column, optionally sortable and searchable."""

    def __init__(self, label: str, field: Optional[str] = None):
        self.label = label
        self.field = field or _snake(label)
        self._sortable: Union[bool, Callable[[], bool]] = False
        self._searchable: Union[bool, Callable[[], bool]] = False
        self._hidden: Union[bool, Callable[[Any], bool]] = False
        self.sort_callback: Optional[Callable] = None
        self.search_callback: Optional[Callable] = None
        self.formatter: Optional[Callable[[Any, Any], Any]] = None
        self.content_callback: Optional[Callable[[Any], Any]] = None
        self.component_type: Optional[str] = None
        self.component_props: Dict[str, Any] = {}
        self.css_class = ""
        self.width: Optional[str] = None
        self.nowrap = True

    @classmethod
    def make(cls, label: str, field: Optional[str] = None) -> "Column":
        return cls(label, field)

    def sortable(self, flag: Union[bool, Callable[[], bool]] = True) -> "Column":
        self._sortable = flag
        return self

    def searchable(self, flag: Union[bool, Callable[[], bool]] = True) -> "Column":
        self._searchable = flag
        return self

    def sort_using(self, callback: Callable) -> "Column":
        """callback(query, direction) -> query"""
        self._sortable = True
        self.sort_callback = callback
        return self

    def search_using(self, callback: Callable) -> "Column":
        """callback(model, term) -> SQL clause, OR-ed with the other searchable columns."""
        self._searchable = True
        self.search_callback = callback
        return self

    def format(self, callback: Callable[[Any, Any], Any]) -> "Column":
        """callback(value, row) -> displayed value"""
        self.formatter = callback
        return self

    def content(self, callback: Callable[[Any], Any]) -> "Column":
        self.content_callback = callback
        return self

    def type(self, component: str, props: Optional[Dict[str, Any]] = None) -> "Column":
        """Render the cell through a named UI component (badge, avatar, ...)."""
        self.component_type = component
        self.component_props = props or {}
        return self

    def css(self, css_class: str) -> "Column":
        self.css_class = css_class
        return self

    def hidden(self, condition: Union[bool, Callable[[Any], bool]] = True) -> "Column":
        self._hidden = condition
        return self

    def set_width(self, width: str) -> "Column":
        self.width = width
        return self

    def is_sortable(self) -> bool:
        return bool(self._sortable() if callable(self._sortable) else self._sortable)

    def is_searchable(self) -> bool:
        return bool(self._searchable() if callable(self._searchable) else self._searchable)

    def is_hidden(self, row: Any = None) -> bool:
        return bool(self._hidden(row) if callable(self._hidden) else self._hidden)

    def has_relationship(self) -> bool:
        return "." in self.field

    def parse_relationship(self) -> Tuple[List[str], str]:
        """Split "team.owner.name" into (["team", "owner"], "name")."""
        parts = self.field.split(".")
        return parts[:-1], parts[-1]

    def resolve_value(self, row: Any) -> Any:
        """Compute the cell value for a row."""
        if self.content_callback is not None:
            value = self.content_callback(row)
        else:
            value = _read_path(row, self.field)
            if self.formatter is not None:
                value = self.formatter(value, row)

        if self.component_type is not None:
            return {"component": self.component_type, "content": value, "props": self.component_props}
        return value

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "field": self.field,
            "sortable": self.is_sortable(),
            "searchable": self.is_searchable(),
            "class": self.css_class,
            "component": self.component_type,
            "width": self.width,
            "nowrap": self.nowrap,
        }


# ============================================================================
# Filters
# ============================================================================

class Filter:
    """A filter control bound to one key of the table's filter state."""

    def __init__(self, key: str, label: str):
        self.key = key
        self.label = label
        self.placeholder_text: Optional[str] = None
        self.filter_type = "select"
        self._options: Optional[Dict[Any, str]] = None
        self._options_callback: Optional[Callable[[], Dict[Any, str]]] = None
        self._resolved_options: Optional[List[dict]] = None
        self.relationship_config: Optional[Dict[str, str]] = None
        self.value_map: Optional[Dict[Any, Any]] = None
        self.field: Optional[str] = None
        self.execute_callback: Optional[Callable] = None
        self._show: Union[bool, Callable[[], bool]] = True

    @classmethod
    def make(cls, key: str, label: str) -> "Filter":
        return cls(key, label)

    def placeholder(self, text: str) -> "Filter":
        self.placeholder_text = text
        return self

    def type(self, filter_type: str) -> "Filter":
        if filter_type not in FILTER_TYPES:
            raise ValueError(f"Unknown filter type '{filter_type}'")
        self.filter_type = filter_type
        return self

    def options(self, options: Dict[Any, str]) -> "Filter":
        self._options = dict(options)
        self._resolved_options = None
        return self

    def options_callback(self, callback: Callable[[], Dict[Any, str]]) -> "Filter":
        self._options_callback = callback
        self._resolved_options = None
        return self

    def relationship(self, name: str, column: str) -> "Filter":
        self.relationship_config = {"name": name, "column": column}
        return self

    def value_mapping(self, mapping: Dict[Any, Any]) -> "Filter":
        self.value_map = dict(mapping)
        return self

    def field_mapping(self, field: str) -> "Filter":
        self.field = field
        return self

    def execute(self, callback: Callable) -> "Filter":
        """callback(query, value, key) -> query"""
        self.execute_callback = callback
        return self

    def show(self, condition: Union[bool, Callable[[], bool]]) -> "Filter":
        self._show = condition
        return self

    def is_visible(self) -> bool:
        return bool(self._show() if callable(self._show) else self._show)

    def get_options(self) -> List[dict]:
        """
        Options as [{"value", "label"}], with an empty "all" option first.

        Callback options are resolved once and memoised.
        """
        if self._resolved_options is not None:
            return self._resolved_options

        options: Dict[Any, str] = {}
        if self._options is not None:
            options = self._options
        elif self._options_callback is not None:
            options = self._options_callback() or {}

        resolved = [{"value": "", "label": self.placeholder_text or DEFAULT_FILTER_PLACEHOLDER}]
        resolved.extend({"value": value, "label": label} for value, label in options.items())
        self._resolved_options = resolved
        return resolved

    def clear_resolved_options(self) -> None:
        self._resolved_options = None

    def option_label(self, value: Any) -> Optional[str]:
        for option in self.get_options():
            if option["value"] == "":
                continue
            if option["value"] == value or str(option["value"]) == str(value):
                return option["label"]
        return None

    def map_value(self, value: Any) -> Any:
        if not self.value_map:
            return value
        if isinstance(value, list):
            return [self.value_map.get(item, item) for item in value]
        try:
            return self.value_map.get(value, value)
        except TypeError:
            return value

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "placeholder": self.placeholder_text,
            "type": self.filter_type,
            "options": self.get_options(),
        }


# ============================================================================
# Actions
# ============================================================================

class BaseAction:
    """Behaviour shared by row actions and bulk actions."""

    def __init__(self, key: str, label: str):
        self.key = key
        self.label = label
        self.icon_name: Optional[str] = None
        self.execute_callback: Optional[Callable] = None
        self.modal_view: Optional[str] = None
        self.modal_props: Union[Dict[str, Any], Callable[[Any], Dict[str, Any]]] = {}
        self.modal_type = "view"
        self.permission: Optional[str] = None
        self.variant_name = "ghost"
        self.color_name: Optional[str] = None
        self.confirm_required = False
        self.confirm_message: Union[str, Callable, None] = None
        self.confirm_view_name: Optional[str] = None
        self.confirm_view_props: Dict[str, Any] = {}
        self._show: Union[bool, Callable] = True

    @classmethod
    def make(cls, key: str, label: str):
        return cls(key, label)

    def icon(self, icon: str):
        self.icon_name = icon
        return self

    def execute(self, callback: Callable):
        self.execute_callback = callback
        return self

    def modal(self, view: str, props: Union[Dict[str, Any], Callable, None] = None, modal_type: str = "view"):
        self.modal_view = view
        self.modal_props = props if props is not None else {}
        self.modal_type = modal_type
        return self

    def show(self, condition: Union[bool, Callable]):
        self._show = condition
        return self

    def can(self, permission: str):
        self.permission = permission
        return self

    def variant(self, variant: str):
        self.variant_name = variant
        return self

    def color(self, color: str):
        self.color_name = color
        return self

    def confirm(self, message: Union[str, Callable, None] = None):
        """Require confirmation. message may be a string or a callable returning a string or a dict."""
        self.confirm_required = True
        self.confirm_message = message
        return self

    def confirm_view(self, view: str, props: Optional[Dict[str, Any]] = None):
        self.confirm_required = True
        self.confirm_view_name = view
        self.confirm_view_props = props or {}
        return self

    def requires_confirmation(self) -> bool:
        return self.confirm_required

    def is_authorized(self, user=None) -> bool:
        """Actions without a permission are open to everyone; others need a user holding it."""
        if self.permission is None:
            return True
        if user is None:
            return False
        return user.has_permission(self.permission)

    def resolve_modal_props(self, target: Any) -> Dict[str, Any]:
        if callable(self.modal_props):
            return self.modal_props(target)
        return dict(self.modal_props)

    def resolve_confirmation(self, target: Any) -> dict:
        """
        Describe the confirmation to show for this action.

        Returns one of:
            {"type": "view", "view", "props"}
            {"type": "config", "title", "content", "confirm_text", "cancel_text"}
            {"type": "message", "message"}
        """
        if self.confirm_view_name is not None:
            return {"type": "view", "view": self.confirm_view_name, "props": dict(self.confirm_view_props)}

        if callable(self.confirm_message):
            result = self.confirm_message(target)
            if isinstance(result, dict):
                return {
                    "type": "config",
                    "title": result.get("title", DEFAULT_CONFIRM_TITLE),
                    "content": result.get("content", ""),
                    "confirm_text": result.get("confirm_text", DEFAULT_CONFIRM_TEXT),
                    "cancel_text": result.get("cancel_text", DEFAULT_CANCEL_TEXT),
                }
            return {"type": "message", "message": result}

        return {"type": "message", "message": self.confirm_message or DEFAULT_CONFIRM_MESSAGE}

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "icon": self.icon_name,
            "variant": self.variant_name,
            "color": self.color_name,
            "has_execute": self.execute_callback is not None,
            "has_modal": self.modal_view is not None,
            "modal": self.modal_view,
            "confirm": self.confirm_required,
            "confirm_message": self.confirm_message if isinstance(self.confirm_message, str) else None,
        }


class Action(BaseAction):
    """
    Row action. Resolves to navigation (route), a modal or a mutation
    (execute). Callables receive the row.
    """

    def __init__(self, key: str, label: str):
        super().__init__(key, label)
        self.route_target: Union[str, Callable[[Any], str], None] = None

    def route(self, target: Union[str, Callable[[Any], str]]) -> "Action":
        self.route_target = target
        return self

    def resolve_route(self, row: Any) -> Optional[str]:
        if callable(self.route_target):
            return self.route_target(row)
        return self.route_target

    def is_visible(self, row: Any = None) -> bool:
        if callable(self._show):
            return bool(self._show(row))
        return bool(self._show)

    def should_render(self, row: Any, user=None) -> bool:
        return self.is_authorized(user) and self.is_visible(row)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["has_route"] = self.route_target is not None
        return data


class BulkAction(BaseAction):
    """Action applied to the selected rows. Callables receive the list of rows."""

    def is_visible(self, user=None) -> bool:
        if callable(self._show):
            return bool(self._show(user))
        return bool(self._show)

    def should_render(self, user=None) -> bool:
        return self.is_authorized(user) and self.is_visible(user)
