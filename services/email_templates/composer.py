"""Wraps template bodies in their layout."""

import re
from typing import Optional

SLOT_PATTERN = re.compile(r"\{\{\{?\s*slot\s*\}?\}\}")


def compose(layout_content: Optional[str], content: str) -> str:
    """
    Insert content at every {{ slot }} (or {{{ slot }}}) in the layout.

    A layout without content returns the body unchanged.
    """
    if not layout_content:
        return content
    return content.join(SLOT_PATTERN.split(layout_content))


def is_full_document(content: Optional[str]) -> bool:
    """Full HTML documents are never wrapped in a layout."""
    if not content:
        return False
    lowered = content.lower()
    return "<!doctype html" in lowered or "<html" in lowered
