"""
Shared lifecycle orchestration for one entity kind.

Each public method runs one intent inside a single storage transaction:
preconditions (guards) first, then the state transition on the store.
Results are converted to plain records before the transaction closes.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional

from folio.db.session import transaction
from folio.domain.kinds import Visibility
from folio.domain.query import Pagination, QueryComposer
from folio.domain.records import Page
from folio.repositories.entity_store import EntityStore
from folio.services.guards import UniquenessGuard


class LifecycleService:
    """create/read/update/delete/restore/purge/list for one EntityKind."""

    def __init__(
        self,
        store: EntityStore,
        composer: QueryComposer,
        to_record: Callable[[Any], Any],
    ) -> None:
        self.store = store
        self.kind = store.kind
        self.composer = composer
        self.uniqueness = UniquenessGuard(store)
        self._to_record = to_record

    # -------------------------------------- reads --------------------------------------
    def get(self, entity_id: int, visibility: Visibility = Visibility.ACTIVE_ONLY):
        with transaction() as session:
            return self._to_record(self.store.get_by_id(session, entity_id, visibility))

    def list(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        sort: Optional[Mapping[str, Any]] = None,
        page: Optional[Mapping[str, Any]] = None,
    ) -> Page:
        spec = self.composer.compose(filters, sort, page)
        with transaction() as session:
            rows, total = self.store.list(session, spec)
            items = [self._to_record(row) for row in rows]
        return Page(items=items, pagination=Pagination.build(total, spec.page, spec.limit))

    # -------------------------------------- writes --------------------------------------
    def _create(self, fields: Mapping[str, Any], precheck: Optional[Callable] = None):
        with transaction() as session:
            if precheck is not None:
                precheck(session)
            self.uniqueness.check_all(session, fields)
            return self._to_record(self.store.create(session, fields))

    def _update(self, entity_id: int, patch: Mapping[str, Any], authorize: Optional[Callable] = None):
        with transaction() as session:
            row = self.store.get_by_id(session, entity_id, Visibility.INCLUDE_DELETED)
            if authorize is not None:
                authorize(row)
            self.uniqueness.check_changes(session, row, patch)
            return self._to_record(self.store.update(session, entity_id, patch))

    def soft_delete(self, entity_id: int):
        with transaction() as session:
            return self._to_record(self.store.soft_delete(session, entity_id))

    def restore(self, entity_id: int):
        with transaction() as session:
            return self._to_record(self.store.restore(session, entity_id))

    def purge(self, entity_id: int) -> None:
        with transaction() as session:
            self.store.purge(session, entity_id)

    def batch_soft_delete(self, ids: Iterable[int], scope: Optional[Mapping[str, Any]] = None) -> int:
        with transaction() as session:
            return self.store.batch_soft_delete(session, ids, scope)

    def _counts(self, where: Optional[Mapping[str, Any]] = None) -> tuple[int, int, int]:
        """(total, active, deleted) across both lifecycle states."""
        with transaction() as session:
            total = self.store.count(session, Visibility.INCLUDE_DELETED, where)
            active = self.store.count(session, Visibility.ACTIVE_ONLY, where)
        return total, active, total - active
