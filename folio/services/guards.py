"""Precondition checks run before the store performs a transition."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from folio.core.errors import DuplicateValue, Forbidden, ParentNotFound, ValidationFailed
from folio.domain.kinds import Visibility
from folio.repositories.entity_store import EntityStore


class UniquenessGuard:
    """Rejects values already held by another record of the same kind.

    Soft-deleted records still occupy their unique values. The check is
    check-then-act; the unique indexes in the schema catch concurrent writers.
    """

    def __init__(self, store: EntityStore) -> None:
        self.store = store
        self.kind = store.kind

    def _same(self, field: str, current: Any, candidate: Any) -> bool:
        if field in self.kind.case_insensitive and isinstance(current, str) and isinstance(candidate, str):
            return current.strip().lower() == candidate.strip().lower()
        return current == candidate

    def check_unique(self, session: Session, field: str, value: Any, exclude_id: Optional[Any] = None) -> None:
        if field not in self.kind.unique_fields:
            raise ValidationFailed(f"{field} is not a unique {self.kind.name} field")
        holder = self.store.find_by(session, field, value, Visibility.INCLUDE_DELETED, exclude_id=exclude_id)
        if holder is not None:
            raise DuplicateValue(field, value)

    def check_all(self, session: Session, fields: Mapping[str, Any]) -> None:
        for field in self.kind.unique_fields:
            if field in fields:
                self.check_unique(session, field, fields[field])

    def check_changes(self, session: Session, row: Any, patch: Mapping[str, Any]) -> None:
        """Check only the unique fields the patch actually changes."""
        for field in self.kind.unique_fields:
            if field not in patch or self._same(field, getattr(row, field), patch[field]):
                continue
            self.check_unique(session, field, patch[field], exclude_id=row.id)


class RelationGuard:
    """Referential checks between documents and their owning accounts."""

    def __init__(self, parent_store: EntityStore, *, owner_field: str = "owner_id", enforce_ownership: bool = False):
        self.parent_store = parent_store
        self.owner_field = owner_field
        self.enforce_ownership = enforce_ownership

    def require_parent_exists(self, session: Session, parent_id: Any) -> None:
        # Any lifecycle state counts; a soft-deleted account can still own documents.
        if parent_id is None or not self.parent_store.exists(session, parent_id, Visibility.INCLUDE_DELETED):
            raise ParentNotFound(parent_id)

    def require_ownership(self, entity: Any, actor_id: Optional[Any]) -> None:
        if actor_id is None:
            if self.enforce_ownership:
                raise Forbidden("An acting account is required")
            return
        if getattr(entity, self.owner_field) != _as_id(actor_id):
            raise Forbidden("Not the owner of this record")

    def ownership_scope(self, actor_id: Optional[Any]) -> Optional[dict]:
        """Scope for bulk operations: restrict to the actor's own records."""
        if actor_id is None:
            if self.enforce_ownership:
                raise Forbidden("An acting account is required")
            return None
        return {self.owner_field: _as_id(actor_id)}


def _as_id(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationFailed(f"Invalid account id: {value!r}") from exc
