"""Plain records handed back to callers.

Records are built inside the transaction that loaded them, so callers never
hold detached ORM rows. AccountRecord carries no credential material and
doubles as the authenticated Principal. DocumentRecord embeds an OwnerSummary,
which is None once the owning account has been purged.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Generic, Optional, TypeVar

from folio.db.models import Account, Document

from .query import Pagination

T = TypeVar("T")


@dataclass(frozen=True)
class AccountRecord:
    id: int
    handle: str
    email: str
    role: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    deleted_at: Optional[datetime]

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def from_model(cls, row: Account) -> "AccountRecord":
        return cls(
            id=row.id,
            handle=row.handle,
            email=row.email,
            role=row.role,
            created_at=row.created_at,
            updated_at=row.updated_at,
            deleted_at=row.deleted_at,
        )

    def to_dict(self) -> dict:
        return asdict(self)


Principal = AccountRecord


@dataclass(frozen=True)
class OwnerSummary:
    """Public fields of a document's owner."""

    id: int
    handle: str
    email: str

    @classmethod
    def from_model(cls, row: Optional[Account]) -> Optional["OwnerSummary"]:
        if row is None:
            return None
        return cls(id=row.id, handle=row.handle, email=row.email)


@dataclass(frozen=True)
class DocumentRecord:
    id: int
    title: str
    body: str
    owner_id: int
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    deleted_at: Optional[datetime]
    owner: Optional[OwnerSummary] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def from_model(cls, row: Document) -> "DocumentRecord":
        return cls(
            id=row.id,
            title=row.title,
            body=row.body or "",
            owner_id=row.owner_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
            deleted_at=row.deleted_at,
            owner=OwnerSummary.from_model(row.owner),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    pagination: Pagination


@dataclass(frozen=True)
class AccountStats:
    total: int
    active: int
    deleted: int
    by_role: dict[str, int]


@dataclass(frozen=True)
class DocumentStats:
    total: int
    active: int
    deleted: int
