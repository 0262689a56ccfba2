"""
Merge tag resolution for email templates.

Tags are `prefix.key` inside double braces (HTML-escaped) or triple braces
(raw). Sources, checked in order: global tags (app.*, sender.*, meta.*),
`action.*` context variables supplied at send time, then attributes of
entities registered under their prefix (user.*, team.*). Tags that do not
resolve are left in the output unchanged.
"""

import html
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import NoInspectionAvailable

from config import settings
from models.team import Team
from models.user import User

_TAG = r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*"
RAW_TAG_PATTERN = re.compile(r"\{\{\{\s*(" + _TAG + r")\s*\}\}\}")
ESCAPED_TAG_PATTERN = re.compile(r"\{\{\s*(" + _TAG + r")\s*\}\}")
EXTRACT_TAG_PATTERN = re.compile(r"\{?\{\{\s*(" + _TAG + r")\s*\}\}\}?")

CONTEXT_PREFIX = "action"

ENTITY_TYPES: Dict[str, Any] = {
    "user": User,
    "team": Team,
}

EXCLUDED_COLUMNS = {
    "id",
    "password_hash",
    "api_token_hash",
    "frontend_preferences",
    "datatable_preferences",
    "created_by_user_id",
    "deleted_at",
}
EXCLUDED_SUFFIXES = ("_token", "_secret", "_hash", "_password")


def is_excluded_column(column: str) -> bool:
    return column in EXCLUDED_COLUMNS or column.endswith(EXCLUDED_SUFFIXES)


def entity_columns(model) -> List[str]:
    """Column names of a model usable as merge tags."""
    return [
        attr.key
        for attr in sa_inspect(model).column_attrs
        if not is_excluded_column(attr.key)
    ]


def format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def default_global_tags() -> Dict[str, str]:
    now = datetime.now()
    return {
        "app.name": settings.app_name,
        "app.url": settings.app_url,
        "sender.name": settings.mail_from_name,
        "sender.email": settings.mail_from_address,
        "meta.year": str(now.year),
        "meta.date": now.strftime("%Y-%m-%d"),
    }


class MergeTagEngine:
    """
    Resolve, extract and validate merge tags.

    Usage:
        engine = MergeTagEngine().set_entities({"user": user}).set_context({"url": link})
        body = engine.resolve(template_html)
    """

    def __init__(self, global_tags: Optional[Dict[str, str]] = None):
        self.global_tags = default_global_tags()
        if global_tags:
            self.global_tags.update(global_tags)
        self.context: Dict[str, str] = {}
        self.entities: Dict[str, Any] = {}

    def reset(self) -> "MergeTagEngine":
        self.context = {}
        self.entities = {}
        return self

    def set_entity(self, entity_type: str, entity: Any) -> "MergeTagEngine":
        self.entities[entity_type] = entity
        return self

    def set_entities(self, entities: Dict[str, Any]) -> "MergeTagEngine":
        for entity_type, entity in entities.items():
            self.set_entity(entity_type, entity)
        return self

    def set_context(self, variables: Dict[str, Any]) -> "MergeTagEngine":
        for key, value in variables.items():
            self.context[key] = format_value(value)
        return self

    def set_global_tag(self, tag: str, value: str) -> "MergeTagEngine":
        self.global_tags[tag] = value
        return self

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, content: Optional[str]) -> str:
        """Raw tags first, so their braces are not mistaken for escaped tags."""
        if not content:
            return ""
        content = RAW_TAG_PATTERN.sub(lambda m: self._resolve_tag(m.group(1), escape=False), content)
        return ESCAPED_TAG_PATTERN.sub(lambda m: self._resolve_tag(m.group(1), escape=True), content)

    def _resolve_tag(self, tag: str, escape: bool) -> str:
        value = self.tag_value(tag)
        if value is None:
            return f"{{{{ {tag} }}}}" if escape else f"{{{{{{ {tag} }}}}}}"
        return html.escape(value) if escape else value

    def tag_value(self, tag: str) -> Optional[str]:
        parsed = parse_tag(tag)
        if parsed is None:
            return None
        prefix, key = parsed

        if tag in self.global_tags:
            return self.global_tags[tag]

        if prefix == CONTEXT_PREFIX:
            return self.context.get(key)

        entity = self.entities.get(prefix)
        if entity is None or is_excluded_column(key):
            return None
        try:
            columns = {attr.key for attr in sa_inspect(type(entity)).column_attrs}
        except NoInspectionAvailable:
            columns = set()
        if key not in columns and not hasattr(entity, key):
            return None
        return format_value(getattr(entity, key, None))

    # ------------------------------------------------------------------
    # Discovery and validation
    # ------------------------------------------------------------------

    @staticmethod
    def extract_tags(content: Optional[str]) -> List[str]:
        """Unique tags used in content, in first-seen order."""
        if not content:
            return []
        return list(dict.fromkeys(EXTRACT_TAG_PATTERN.findall(content)))

    def is_valid_tag(self, tag: str, entity_types: Iterable[str], context_keys: Iterable[str] = ()) -> bool:
        parsed = parse_tag(tag)
        if parsed is None:
            return False
        prefix, key = parsed
        if tag in self.global_tags:
            return True
        if prefix == CONTEXT_PREFIX:
            return key in set(context_keys)
        if prefix not in set(entity_types) or prefix not in ENTITY_TYPES:
            return False
        return key in entity_columns(ENTITY_TYPES[prefix])

    def validate_tags(self, content: Optional[str], entity_types: Iterable[str], context_keys: Iterable[str] = ()) -> List[str]:
        """Return the tags in content that would not resolve for this template."""
        entity_types = list(entity_types)
        context_keys = list(context_keys)
        return [
            tag for tag in self.extract_tags(content)
            if not self.is_valid_tag(tag, entity_types, context_keys)
        ]

    def available_tags(self, entity_types: Iterable[str], context_keys: Iterable[str] = ()) -> Dict[str, List[str]]:
        """Tags grouped by source, for the template editor."""
        groups: Dict[str, List[str]] = {"global": sorted(self.global_tags)}
        context_keys = list(context_keys)
        if context_keys:
            groups[CONTEXT_PREFIX] = [f"{CONTEXT_PREFIX}.{key}" for key in context_keys]
        for entity_type in entity_types:
            model = ENTITY_TYPES.get(entity_type)
            if model is not None:
                groups[entity_type] = [f"{entity_type}.{column}" for column in entity_columns(model)]
        return groups


def parse_tag(tag: str):
    parts = tag.split(".", 1)
    if len(parts) != 2:
        return None
    return parts[0], parts[1]
