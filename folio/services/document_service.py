"""
Document use cases: authoring, ownership-checked edits, search and lifecycle.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from folio.core.errors import ValidationFailed
from folio.db.session import transaction
from folio.domain.kinds import ACCOUNTS, DOCUMENTS, Visibility
from folio.domain.query import QueryComposer
from folio.domain.records import DocumentRecord, DocumentStats, Page
from folio.repositories.entity_store import EntityStore
from folio.services.guards import RelationGuard
from folio.services.lifecycle import LifecycleService


class DocumentService(LifecycleService):
    """Lifecycle of documents.

    ``actor_id`` on mutating calls (update, soft delete, restore, purge and
    batch soft delete) is the acting account. When given, it must own the
    document. When omitted, ownership is only required if the relation guard
    was built with ``enforce_ownership=True``.
    """

    def __init__(
        self,
        store: Optional[EntityStore] = None,
        composer: Optional[QueryComposer] = None,
        relations: Optional[RelationGuard] = None,
    ) -> None:
        store = store or EntityStore(DOCUMENTS)
        super().__init__(store, composer or QueryComposer(DOCUMENTS), DocumentRecord.from_model)
        self.relations = relations or RelationGuard(EntityStore(ACCOUNTS))

    def create(self, title: str, body: str, owner_id: int) -> DocumentRecord:
        fields = {"title": (title or "").strip(), "body": body or "", "owner_id": owner_id}
        return self._create(fields, precheck=lambda session: self.relations.require_parent_exists(session, owner_id))

    def update(self, document_id: int, patch: Mapping[str, Any], actor_id: Optional[int] = None) -> DocumentRecord:
        changes = dict(patch)
        if "title" in changes:
            changes["title"] = (changes["title"] or "").strip()
        return self._update(
            document_id,
            changes,
            authorize=lambda row: self.relations.require_ownership(row, actor_id),
        )

    def soft_delete(self, document_id: int, actor_id: Optional[int] = None) -> DocumentRecord:
        if self.store.allow_redundant_soft_delete:
            visibility = Visibility.INCLUDE_DELETED
        else:
            visibility = Visibility.ACTIVE_ONLY
        with transaction() as session:
            row = self.store.get_by_id(session, document_id, visibility)
            self.relations.require_ownership(row, actor_id)
            return DocumentRecord.from_model(self.store.soft_delete(session, document_id))

    def restore(self, document_id: int, actor_id: Optional[int] = None) -> DocumentRecord:
        with transaction() as session:
            row = self.store.get_by_id(session, document_id, Visibility.INCLUDE_DELETED)
            self.relations.require_ownership(row, actor_id)
            return DocumentRecord.from_model(self.store.restore(session, document_id))

    def purge(self, document_id: int, actor_id: Optional[int] = None) -> None:
        with transaction() as session:
            row = self.store.get_by_id(session, document_id, Visibility.INCLUDE_DELETED)
            self.relations.require_ownership(row, actor_id)
            self.store.purge(session, document_id)

    def batch_soft_delete(self, ids: Iterable[int], actor_id: Optional[int] = None) -> int:
        return super().batch_soft_delete(ids, self.relations.ownership_scope(actor_id))

    def list_by_owner(
        self,
        owner_id: int,
        filters: Optional[Mapping[str, Any]] = None,
        sort: Optional[Mapping[str, Any]] = None,
        page: Optional[Mapping[str, Any]] = None,
    ) -> Page:
        return self.list({**(filters or {}), "owner_id": owner_id}, sort, page)

    def search(
        self,
        keyword: str,
        filters: Optional[Mapping[str, Any]] = None,
        sort: Optional[Mapping[str, Any]] = None,
        page: Optional[Mapping[str, Any]] = None,
    ) -> Page:
        text = (keyword or "").strip()
        if not text:
            raise ValidationFailed("Search keyword is required")
        merged = {k: v for k, v in (filters or {}).items() if k != "search"}
        merged["keyword"] = text
        return self.list(merged, sort, page)

    def stats(self, owner_id: Optional[int] = None) -> DocumentStats:
        total, active, deleted = self._counts({"owner_id": owner_id} if owner_id is not None else None)
        return DocumentStats(total=total, active=active, deleted=deleted)
