"""
Presentation helpers: the page-number window and active filter chips.

Nothing here mutates state; links carry the operation the client should
post back to change page.
"""

from typing import Any, Dict, List, Union

from datatable.builders import Filter
from datatable.query import Page
from datatable.state import is_empty_filter_value

ELLIPSIS = "..."


def page_window(current: int, last: int) -> List[Union[int, str]]:
    """
    Page numbers to display around the current page.

    Near the end every remaining page is shown; further away the window is
    the current page plus two, an ellipsis, then the last two pages.

        page_window(1, 10) == [1, 2, 3, "...", 9, 10]
        page_window(6, 10) == [6, 7, 8, 9, 10]
        page_window(8, 10) == [7, 8, 9, 10]
    """
    last = max(1, last)
    current = min(max(1, current), last)
    distance = last - current

    if distance <= 3:
        return list(range(max(1, last - 3), last + 1))
    if distance == 4:
        return list(range(current, last + 1))
    return list(range(current, current + 3)) + [ELLIPSIS, last - 1, last]


def build_pagination(page: Page) -> Dict[str, Any]:
    """Render payload for the pager: links with disabled flags and result counters."""
    current, last = page.page, page.last_page
    on_first = current <= 1
    on_last = current >= last

    pages = []
    for item in page_window(current, last):
        if item == ELLIPSIS:
            pages.append({"label": ELLIPSIS, "page": None, "active": False, "disabled": True})
        else:
            pages.append({"label": str(item), "page": item, "active": item == current, "disabled": False})

    return {
        "page": current,
        "per_page": page.per_page,
        "last_page": last,
        "total": page.total,
        "from": page.from_index,
        "to": page.to_index,
        "summary": f"Showing {page.from_index} to {page.to_index} of {page.total} results",
        "has_pages": last > 1,
        "links": {
            "first": {"page": 1, "disabled": on_first},
            "previous": {"page": max(1, current - 1), "disabled": on_first},
            "pages": pages,
            "next": {"page": min(last, current + 1), "disabled": on_last},
            "last": {"page": last, "disabled": on_last},
        },
    }


def format_date_range_label(value: Dict[str, Any]) -> str:
    start = value.get("from") or ""
    end = value.get("to") or ""
    if start and end:
        return f"{start} - {end}"
    if start:
        return f"From {start}"
    if end:
        return f"To {end}"
    return ""


def _value_label(filter_: Filter, value: Any) -> str:
    if filter_.filter_type == "date_range" and isinstance(value, dict):
        return format_date_range_label(value)

    if isinstance(value, (list, tuple)):
        return ", ".join(filter_.option_label(item) or str(item) for item in value)

    label = filter_.option_label(value)
    if label is not None:
        return label

    if filter_.filter_type == "boolean":
        return "Yes" if str(value).lower() in ("1", "true", "yes", "on") else "No"
    return str(value)


def filter_chips(filters: List[Filter], values: Dict[str, Any]) -> List[Dict[str, Any]]:
    """One chip per active filter, in filter definition order."""
    chips = []
    for filter_ in filters:
        if filter_.key not in values:
            continue
        value = values[filter_.key]
        if is_empty_filter_value(value):
            continue
        chips.append({
            "key": filter_.key,
            "label": filter_.label,
            "value": value,
            "value_label": _value_label(filter_, value),
        })
    return chips
