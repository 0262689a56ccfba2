"""
Applies search, filters, sorting and pagination to a SQLAlchemy query.

Order of application: search, filters, sort, then count + offset/limit.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

import logfire
from sqlalchemy import or_
from sqlalchemy.orm import Query, RelationshipProperty
from sqlalchemy.orm.attributes import InstrumentedAttribute

from datatable.builders import Column, Filter
from datatable.state import is_empty_filter_value
from services.exceptions import InvalidOperationError

NULL_SENTINEL = "null"
NOT_NULL_SENTINEL = "not_null"

_TRUE_VALUES = {True, 1, "1", "true", "yes", "on"}
_FALSE_VALUES = {False, 0, "0", "false", "no", "off"}


@dataclass
class QueryOptions:
    """Everything DataTableQueryBuilder needs to build one page."""

    query: Query
    model: Any
    columns: List[Column]
    filters: List[Filter] = field(default_factory=list)
    filter_values: Dict[str, Any] = field(default_factory=dict)
    search: str = ""
    sort_by: Optional[str] = None
    sort_direction: str = "asc"
    page: int = 1
    per_page: int = 12


@dataclass
class Page:
    """One page of results plus the counters the renderer needs."""

    items: List[Any]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def from_index(self) -> int:
        if self.total == 0:
            return 0
        return (self.page - 1) * self.per_page + 1

    @property
    def to_index(self) -> int:
        if self.total == 0:
            return 0
        return self.from_index + len(self.items) - 1

    @property
    def has_more_pages(self) -> bool:
        return self.page < self.last_page


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def coerce_bool(value: Any) -> Any:
    if isinstance(value, (list, tuple, dict)):
        return value
    if isinstance(value, str):
        lowered = value.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        return value
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return value


def _parse_bound(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise InvalidOperationError(f"Invalid date '{value}'")


def validate_date_range(value: Any) -> None:
    """Raise InvalidOperationError unless both bounds of a date range parse."""
    if not isinstance(value, dict):
        raise InvalidOperationError("A date range needs 'from' and/or 'to' dates")
    _parse_bound(value.get("from"))
    _parse_bound(value.get("to"))


def _is_relationship(attr: Any) -> bool:
    return isinstance(attr, InstrumentedAttribute) and isinstance(attr.property, RelationshipProperty)


def _is_date_only(value: Any) -> bool:
    if isinstance(value, datetime):
        return False
    if isinstance(value, date):
        return True
    return isinstance(value, str) and len(value) == 10


class DataTableQueryBuilder:
    """Builds a Page from QueryOptions."""

    def build(self, options: QueryOptions) -> Page:
        with logfire.span("datatable.query", model=options.model.__name__, page=options.page):
            query = options.query

            if options.search:
                query = self.apply_search(query, options.model, options.columns, options.search)

            query = self.apply_filters(query, options.model, options.filters, options.filter_values)

            if options.sort_by:
                query = self.apply_sorting(query, options.model, options.columns, options.sort_by, options.sort_direction)

            return self.paginate(query, options.page, options.per_page)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def apply_search(self, query: Query, model, columns: List[Column], term: str) -> Query:
        pattern = f"%{escape_like(term)}%"
        clauses = []
        for column in columns:
            if not column.is_searchable():
                continue

            if column.search_callback is not None:
                clause = column.search_callback(model, term)
                if clause is not None:
                    clauses.append(clause)
                continue

            if column.has_relationship():
                path, attribute = column.parse_relationship()
                clause = self._relationship_clause(
                    model, path, lambda related: getattr(related, attribute).ilike(pattern, escape="\\")
                )
            else:
                attr = getattr(model, column.field, None)
                clause = attr.ilike(pattern, escape="\\") if isinstance(attr, InstrumentedAttribute) else None

            if clause is not None:
                clauses.append(clause)

        if not clauses:
            return query
        return query.filter(or_(*clauses))

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def apply_filters(self, query: Query, model, filters: List[Filter], values: Dict[str, Any]) -> Query:
        for filter_ in filters:
            key = filter_.key
            if key not in values or is_empty_filter_value(values[key]):
                continue

            value = values[key]

            if filter_.execute_callback is not None:
                query = filter_.execute_callback(query, value, key)
                continue

            value = filter_.map_value(value)
            if filter_.filter_type == "boolean":
                value = coerce_bool(value)

            if filter_.relationship_config is not None:
                clause = self._relationship_filter(model, filter_.relationship_config, value)
                if clause is not None:
                    query = query.filter(clause)
                continue

            field_name = filter_.field or key
            attr = getattr(model, field_name, None)
            if not isinstance(attr, InstrumentedAttribute):
                logfire.warning("Ignoring filter on unknown field", model=model.__name__, field=field_name)
                continue

            if filter_.filter_type == "date_range":
                query = self._apply_date_range(query, attr, value)
            elif value == NOT_NULL_SENTINEL:
                query = query.filter(attr.isnot(None))
            elif value == NULL_SENTINEL:
                query = query.filter(attr.is_(None))
            elif isinstance(value, (list, tuple)):
                query = query.filter(attr.in_(list(value)))
            else:
                query = query.filter(attr == value)

        return query

    def _relationship_filter(self, model, config: Dict[str, str], value: Any):
        def criterion(related):
            column = getattr(related, config["column"])
            if isinstance(value, (list, tuple)):
                return column.in_(list(value))
            return column == value

        return self._relationship_clause(model, config["name"].split("."), criterion)

    def _apply_date_range(self, query: Query, attr, value: Any) -> Query:
        if not isinstance(value, dict):
            return query
        start = _parse_bound(value.get("from"))
        end_raw = value.get("to")
        end = _parse_bound(end_raw)
        if start is not None:
            query = query.filter(attr >= start)
        if end is not None:
            if _is_date_only(end_raw):
                query = query.filter(attr < end + timedelta(days=1))
            else:
                query = query.filter(attr <= end)
        return query

    # ------------------------------------------------------------------
    # Sorting
    # ------------------------------------------------------------------

    def apply_sorting(self, query: Query, model, columns: List[Column], sort_by: str, direction: str) -> Query:
        column = next((c for c in columns if c.field == sort_by), None)
        if column is None or not column.is_sortable():
            return query

        if column.sort_callback is not None:
            return column.sort_callback(query, direction)

        if column.has_relationship():
            path, attribute = column.parse_relationship()
            current = model
            for name in path:
                relationship = getattr(current, name, None)
                if not _is_relationship(relationship) or relationship.property.uselist:
                    # Sorting through collections is ambiguous
                    return query
                query = query.outerjoin(relationship)
                current = relationship.property.mapper.class_
            target = getattr(current, attribute)
        else:
            target = getattr(model, column.field, None)
            if not isinstance(target, InstrumentedAttribute):
                return query

        ordering = target.desc() if direction == "desc" else target.asc()
        return query.order_by(None).order_by(ordering, model.id.asc())

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    def paginate(self, query: Query, page: int, per_page: int) -> Page:
        total = query.order_by(None).count()
        last_page = max(1, math.ceil(total / per_page))
        page = min(max(1, page), last_page)
        items = query.offset((page - 1) * per_page).limit(per_page).all()
        return Page(items=items, total=total, page=page, per_page=per_page)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _relationship_clause(self, model, path: List[str], criterion):
        """
        Build an EXISTS clause through a chain of relationships.

        Collections use any(), scalar relationships use has().
        """
        relationship = getattr(model, path[0], None)
        if not _is_relationship(relationship):
            logfire.warning("Ignoring unknown relationship", model=model.__name__, relationship=path[0])
            return None

        related = relationship.property.mapper.class_
        if len(path) > 1:
            inner = self._relationship_clause(related, path[1:], criterion)
        else:
            inner = criterion(related)
        if inner is None:
            return None

        if relationship.property.uselist:
            return relationship.any(inner)
        return relationship.has(inner)
