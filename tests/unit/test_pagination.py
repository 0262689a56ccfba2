"""
Tests for the pager window, pager links and filter chips.

Run with:
    pytest tests/unit/test_pagination.py -v
"""

import pytest

from datatable import Filter, Page, build_pagination, filter_chips, page_window
from datatable.pagination import ELLIPSIS, format_date_range_label


pytestmark = pytest.mark.unit


# ===================================================================
# TESTS - Page window
# ===================================================================

@pytest.mark.parametrize(
    "current, last, expected",
    [
        (1, 10, [1, 2, 3, ELLIPSIS, 9, 10]),
        (3, 10, [3, 4, 5, ELLIPSIS, 9, 10]),
        (6, 10, [6, 7, 8, 9, 10]),
        (7, 10, [7, 8, 9, 10]),
        (8, 10, [7, 8, 9, 10]),
        (10, 10, [7, 8, 9, 10]),
        (1, 1, [1]),
        (1, 3, [1, 2, 3]),
    ],
)
def test_page_window_shapes(current, last, expected):
    assert page_window(current, last) == expected


def test_page_window_clamps_out_of_range_pages():
    assert page_window(0, 4) == [1, 2, 3, 4]
    assert page_window(99, 10) == [7, 8, 9, 10]


# ===================================================================
# TESTS - Pager payload
# ===================================================================

def test_first_page_disables_backwards_links():
    pagination = build_pagination(Page(items=[], total=120, page=1, per_page=12))

    links = pagination["links"]
    assert links["first"]["disabled"] is True
    assert links["previous"]["disabled"] is True
    assert links["next"] == {"page": 2, "disabled": False}
    assert links["last"] == {"page": 10, "disabled": False}
    assert [link["label"] for link in links["pages"]] == ["1", "2", "3", ELLIPSIS, "9", "10"]
    assert links["pages"][0]["active"] is True
    assert links["pages"][3]["disabled"] is True


def test_summary_counts_the_visible_rows():
    pagination = build_pagination(Page(items=[object()] * 5, total=29, page=3, per_page=12))

    assert pagination["from"] == 25
    assert pagination["to"] == 29
    assert pagination["summary"] == "Showing 25 to 29 of 29 results"
    assert pagination["links"]["next"]["disabled"] is True


def test_single_page_has_no_pager():
    pagination = build_pagination(Page(items=[object()], total=1, page=1, per_page=12))
    assert pagination["has_pages"] is False


# ===================================================================
# TESTS - Filter chips
# ===================================================================

@pytest.fixture
def filters():
    return [
        Filter.make("status", "Status").options({"active": "Active", "inactive": "Inactive"}),
        Filter.make("role", "Role").type("multiselect").options({"editor": "Editor", "viewer": "Viewer"}),
        Filter.make("created", "Created").type("date_range"),
        Filter.make("verified", "Verified").type("boolean"),
    ]


def test_chips_follow_filter_order_and_use_option_labels(filters):
    chips = filter_chips(filters, {"role": ["editor", "viewer"], "status": "active"})

    assert [chip["key"] for chip in chips] == ["status", "role"]
    assert chips[0]["value_label"] == "Active"
    assert chips[1]["value_label"] == "Editor, Viewer"


def test_empty_values_produce_no_chip(filters):
    chips = filter_chips(filters, {"status": "", "role": [], "created": {"from": None, "to": ""}})
    assert chips == []


def test_date_range_and_boolean_labels(filters):
    chips = filter_chips(filters, {"created": {"from": "2024-01-01"}, "verified": "1"})

    assert chips[0]["value_label"] == "From 2024-01-01"
    assert chips[1]["value_label"] == "Yes"
    assert format_date_range_label({"from": "2024-01-01", "to": "2024-02-01"}) == "2024-01-01 - 2024-02-01"
    assert format_date_range_label({"to": "2024-02-01"}) == "To 2024-02-01"
