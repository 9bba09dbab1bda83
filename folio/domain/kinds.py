"""Entity-kind descriptors.

The store, guards and query composer are generic; everything that differs
between accounts and documents (columns, unique fields, sortable fields,
filterable fields, relationships loaded with each row) is declared here.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from folio.db.models import Account, Document


class Visibility(str, Enum):
    ACTIVE_ONLY = "active_only"
    INCLUDE_DELETED = "include_deleted"


class Role(str, Enum):
    STANDARD = "standard"
    PRIVILEGED = "privileged"


def coerce_role(value: Any) -> str:
    try:
        return Role(str(value).strip().lower()).value
    except ValueError:
        raise ValueError(f"Unknown role: {value!r}") from None


def coerce_id(value: Any) -> int:
    parsed = int(str(value).strip())
    if parsed < 1:
        raise ValueError(f"Identifier must be positive: {value!r}")
    return parsed


@dataclass(frozen=True)
class EntityKind:
    name: str
    model: Any
    fields: tuple[str, ...]
    required: tuple[str, ...]
    immutable: tuple[str, ...]
    unique_fields: tuple[str, ...]
    sortable: tuple[str, ...]
    case_insensitive: frozenset[str] = frozenset()
    contains_fields: tuple[str, ...] = ()
    equals_fields: Mapping[str, Callable[[Any], Any]] = field(default_factory=dict)
    search_fields: tuple[str, ...] = ()
    owner_field: Optional[str] = None
    eager: tuple[str, ...] = ()
    default_sort: str = "created_at"

    def column(self, name: str):
        return getattr(self.model, name)


ACCOUNTS = EntityKind(
    name="account",
    model=Account,
    fields=("handle", "email", "credential_hash", "role"),
    required=("handle", "email", "credential_hash"),
    immutable=("id", "created_at", "updated_at", "deleted_at"),
    unique_fields=("handle", "email"),
    case_insensitive=frozenset({"email"}),
    sortable=("id", "handle", "email", "created_at"),
    equals_fields={"role": coerce_role},
    search_fields=("handle", "email"),
)

DOCUMENTS = EntityKind(
    name="document",
    model=Document,
    fields=("title", "body", "owner_id"),
    required=("title", "owner_id"),
    immutable=("id", "owner_id", "created_at", "updated_at", "deleted_at"),
    unique_fields=("title",),
    sortable=("id", "title", "created_at", "updated_at"),
    contains_fields=("title",),
    equals_fields={"owner_id": coerce_id},
    search_fields=("title", "body"),
    owner_field="owner_id",
    eager=("owner",),
)
