"""Listing queries: untyped filter/sort/page parameters in, a bounded spec out.

The composer knows nothing about SQL. It produces plain predicate objects that
the entity store renders against its table.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from folio.core.errors import ValidationFailed

from .kinds import EntityKind, Visibility

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

_TRUTHY = {"1", "true", "yes", "on"}
_SEARCH_KEYS = ("search", "keyword")


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match on one field."""

    field: str
    text: str


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any


@dataclass(frozen=True)
class AnyContains:
    """Substring match on any of several fields."""

    fields: tuple[str, ...]
    text: str


Predicate = Union[Contains, Equals, AnyContains]


@dataclass(frozen=True)
class SortSpec:
    field: str
    descending: bool = True


@dataclass(frozen=True)
class QuerySpec:
    predicates: tuple[Predicate, ...]
    visibility: Visibility
    sort: SortSpec
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Pagination:
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        total_pages = math.ceil(total / limit) if total > 0 else 0
        return cls(total=total, page=page, limit=limit, total_pages=total_pages)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "total_pages": self.total_pages,
        }


def _positive_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return parsed if parsed >= 1 else default


def _truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUTHY


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


class QueryComposer:
    """Turns raw listing parameters into a QuerySpec for one entity kind."""

    def __init__(self, kind: EntityKind, *, default_limit: int = DEFAULT_LIMIT, max_limit: int = MAX_LIMIT):
        self.kind = kind
        self.default_limit = default_limit
        self.max_limit = max(max_limit, 1)

    def compose(
        self,
        raw_filter: Optional[Mapping[str, Any]] = None,
        raw_sort: Optional[Mapping[str, Any]] = None,
        raw_page: Optional[Mapping[str, Any]] = None,
    ) -> QuerySpec:
        raw_filter = raw_filter or {}
        page, limit = self.page_bounds(raw_page)
        return QuerySpec(
            predicates=self.predicates(raw_filter),
            visibility=self.visibility(raw_filter),
            sort=self.sort(raw_sort),
            page=page,
            limit=limit,
        )

    def predicates(self, raw_filter: Mapping[str, Any]) -> tuple[Predicate, ...]:
        result: list[Predicate] = []
        for name in self.kind.contains_fields:
            text = _text(raw_filter.get(name))
            if text:
                result.append(Contains(name, text))
        for name, coerce in self.kind.equals_fields.items():
            raw = raw_filter.get(name)
            if raw is None or _text(raw) == "":
                continue
            try:
                result.append(Equals(name, coerce(raw)))
            except (TypeError, ValueError) as exc:
                raise ValidationFailed(f"Invalid value for {name}: {raw!r}") from exc
        if self.kind.search_fields:
            for key in _SEARCH_KEYS:
                text = _text(raw_filter.get(key))
                if text:
                    result.append(AnyContains(self.kind.search_fields, text))
                    break
        return tuple(result)

    def visibility(self, raw_filter: Mapping[str, Any]) -> Visibility:
        explicit = raw_filter.get("visibility")
        if isinstance(explicit, Visibility):
            return explicit
        if _text(explicit):
            try:
                return Visibility(str(explicit).strip().lower())
            except ValueError as exc:
                raise ValidationFailed(f"Invalid visibility: {explicit!r}") from exc
        if _truthy(raw_filter.get("include_deleted")):
            return Visibility.INCLUDE_DELETED
        return Visibility.ACTIVE_ONLY

    def sort(self, raw_sort: Optional[Mapping[str, Any]]) -> SortSpec:
        raw_sort = raw_sort or {}
        field = _text(raw_sort.get("sort_by"))
        order = _text(raw_sort.get("sort_order")).upper()
        if field not in self.kind.sortable:
            return SortSpec(self.kind.default_sort, descending=True)
        return SortSpec(field, descending=order != "ASC")

    def page_bounds(self, raw_page: Optional[Mapping[str, Any]]) -> tuple[int, int]:
        raw_page = raw_page or {}
        page = _positive_int(raw_page.get("page"), DEFAULT_PAGE)
        limit = _positive_int(raw_page.get("limit"), self.default_limit)
        return page, min(limit, self.max_limit)
