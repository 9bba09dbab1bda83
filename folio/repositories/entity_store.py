"""Generic CRUD and soft-delete state machine over one entity table.

Every method takes the caller's session so that guard reads and writes for a
single intent share one transaction (see folio.db.session.transaction).
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from folio.core.errors import DuplicateValue, NotDeleted, NotFound, ValidationFailed
from folio.domain.kinds import EntityKind, Visibility
from folio.domain.query import AnyContains, Contains, Equals, Predicate, QuerySpec

logger = logging.getLogger(__name__)


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class EntityStore:
    """CRUD helpers for one EntityKind."""

    def __init__(self, kind: EntityKind, *, allow_redundant_soft_delete: bool = True):
        self.kind = kind
        self.model = kind.model
        self.allow_redundant_soft_delete = allow_redundant_soft_delete

    # -------------------------- helpers --------------------------
    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _loaded(self, stmt):
        for name in self.kind.eager:
            stmt = stmt.options(selectinload(getattr(self.model, name)))
        return stmt

    def _visible(self, stmt, visibility: Visibility):
        if visibility is Visibility.ACTIVE_ONLY:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        return stmt

    def _match(self, field: str, value: Any):
        column = self.kind.column(field)
        if field in self.kind.case_insensitive and isinstance(value, str):
            return func.lower(column) == value.strip().lower()
        return column == value

    def _render(self, predicate: Predicate):
        if isinstance(predicate, Contains):
            return self.kind.column(predicate.field).ilike(_like_pattern(predicate.text), escape="\\")
        if isinstance(predicate, Equals):
            return self.kind.column(predicate.field) == predicate.value
        if isinstance(predicate, AnyContains):
            pattern = _like_pattern(predicate.text)
            return or_(*[self.kind.column(f).ilike(pattern, escape="\\") for f in predicate.fields])
        raise ValidationFailed(f"Unsupported predicate: {predicate!r}")

    def _reject_unknown(self, fields: Iterable[str]) -> None:
        unknown = sorted(set(fields) - set(self.kind.fields))
        if unknown:
            raise ValidationFailed(f"Unknown {self.kind.name} fields: {', '.join(unknown)}")

    def _flush(self, session: Session) -> None:
        try:
            session.flush()
        except IntegrityError as exc:
            message = str(exc.orig).lower()
            if "unique" not in message and "duplicate" not in message:
                raise
            field = next((f for f in self.kind.unique_fields if f in message), None)
            raise DuplicateValue(field) from exc

    # -------------------------- reads --------------------------
    def find(self, session: Session, entity_id: Any, visibility: Visibility = Visibility.ACTIVE_ONLY):
        stmt = self._visible(select(self.model).where(self.model.id == entity_id), visibility)
        return session.execute(self._loaded(stmt)).scalar_one_or_none()

    def get_by_id(self, session: Session, entity_id: Any, visibility: Visibility = Visibility.ACTIVE_ONLY):
        row = self.find(session, entity_id, visibility)
        if row is None:
            raise NotFound(self.kind.name, entity_id)
        return row

    def find_by(
        self,
        session: Session,
        field: str,
        value: Any,
        visibility: Visibility = Visibility.ACTIVE_ONLY,
        *,
        exclude_id: Optional[Any] = None,
    ):
        stmt = select(self.model).where(self._match(field, value))
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        stmt = self._visible(stmt, visibility).limit(1)
        return session.execute(stmt).scalars().first()

    def exists(self, session: Session, entity_id: Any, visibility: Visibility = Visibility.INCLUDE_DELETED) -> bool:
        stmt = self._visible(select(self.model.id).where(self.model.id == entity_id), visibility).limit(1)
        return session.execute(stmt).first() is not None

    def list(self, session: Session, spec: QuerySpec) -> tuple[list, int]:
        stmt = self._visible(select(self.model), spec.visibility)
        for predicate in spec.predicates:
            stmt = stmt.where(self._render(predicate))
        total = session.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
        column = self.kind.column(spec.sort.field)
        if spec.sort.descending:
            order = (column.desc(), self.model.id.desc())
        else:
            order = (column.asc(), self.model.id.asc())
        page = self._loaded(stmt).order_by(*order).offset(spec.offset).limit(spec.limit)
        rows = session.execute(page).scalars().all()
        return list(rows), int(total)

    def count(
        self,
        session: Session,
        visibility: Visibility = Visibility.ACTIVE_ONLY,
        where: Optional[Mapping[str, Any]] = None,
    ) -> int:
        stmt = self._visible(select(func.count(self.model.id)), visibility)
        for field, value in (where or {}).items():
            stmt = stmt.where(self._match(field, value))
        return int(session.execute(stmt).scalar_one())

    # -------------------------- writes --------------------------
    def create(self, session: Session, fields: Mapping[str, Any]):
        self._reject_unknown(fields)
        missing = [f for f in self.kind.required if fields.get(f) in (None, "")]
        if missing:
            raise ValidationFailed(f"Missing {self.kind.name} fields: {', '.join(missing)}")
        now = self._now()
        row = self.model(**dict(fields), created_at=now, updated_at=now, deleted_at=None)
        session.add(row)
        self._flush(session)
        logger.info("%s created", self.kind.name, extra={"kind": self.kind.name, "entity_id": row.id})
        return row

    def update(
        self,
        session: Session,
        entity_id: Any,
        patch: Mapping[str, Any],
        visibility: Visibility = Visibility.INCLUDE_DELETED,
    ):
        frozen = sorted(set(patch) & set(self.kind.immutable))
        if frozen:
            raise ValidationFailed(f"Immutable {self.kind.name} fields: {', '.join(frozen)}")
        self._reject_unknown(patch)
        row = self.get_by_id(session, entity_id, visibility)
        for field, value in patch.items():
            if field in self.kind.required and value in (None, ""):
                raise ValidationFailed(f"{field} cannot be empty")
            setattr(row, field, value)
        row.updated_at = self._now()
        self._flush(session)
        return row

    def soft_delete(self, session: Session, entity_id: Any):
        """Stamp deleted_at. Re-stamps an already deleted row unless redundant deletes are disabled."""
        visibility = Visibility.INCLUDE_DELETED if self.allow_redundant_soft_delete else Visibility.ACTIVE_ONLY
        row = self.get_by_id(session, entity_id, visibility)
        row.deleted_at = self._now()
        self._flush(session)
        logger.info("%s soft-deleted", self.kind.name, extra={"kind": self.kind.name, "entity_id": row.id})
        return row

    def restore(self, session: Session, entity_id: Any):
        row = self.get_by_id(session, entity_id, Visibility.INCLUDE_DELETED)
        if row.deleted_at is None:
            raise NotDeleted(self.kind.name, entity_id)
        row.deleted_at = None
        self._flush(session)
        logger.info("%s restored", self.kind.name, extra={"kind": self.kind.name, "entity_id": row.id})
        return row

    def purge(self, session: Session, entity_id: Any) -> None:
        row = self.get_by_id(session, entity_id, Visibility.INCLUDE_DELETED)
        session.delete(row)
        self._flush(session)
        logger.info("%s purged", self.kind.name, extra={"kind": self.kind.name, "entity_id": entity_id})

    def batch_soft_delete(
        self,
        session: Session,
        ids: Iterable[Any],
        scope: Optional[Mapping[str, Any]] = None,
    ) -> int:
        """Soft-delete the active rows among ``ids`` that also match ``scope``.

        Missing ids are skipped; the return value is the number of rows changed.
        """
        try:
            id_set = sorted({int(i) for i in ids})
        except (TypeError, ValueError) as exc:
            raise ValidationFailed("Batch ids must be integers") from exc
        if not id_set:
            return 0
        stmt = update(self.model).where(self.model.id.in_(id_set), self.model.deleted_at.is_(None))
        for field, value in (scope or {}).items():
            if field not in self.kind.equals_fields:
                raise ValidationFailed(f"Cannot scope {self.kind.name} batch by {field}")
            stmt = stmt.where(self.kind.column(field) == value)
        stmt = stmt.values(deleted_at=self._now()).execution_options(synchronize_session=False)
        affected = session.execute(stmt).rowcount or 0
        logger.info(
            "%s batch soft-delete", self.kind.name, extra={"kind": self.kind.name, "affected": affected}
        )
        return affected
