"""
Account use cases: registration, profile changes, role changes, lifecycle and stats.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from folio.core.errors import NotFound, ValidationFailed
from folio.core.security import Argon2Hasher, CredentialHasher
from folio.db.session import transaction
from folio.domain.kinds import ACCOUNTS, Role, Visibility, coerce_role
from folio.domain.query import QueryComposer
from folio.domain.records import AccountRecord, AccountStats, Principal
from folio.repositories.entity_store import EntityStore
from folio.services.auth_service import AuthService
from folio.services.lifecycle import LifecycleService

_PATCHABLE = {"handle", "email", "credential", "role"}


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def _role(value: Any) -> str:
    try:
        return coerce_role(value)
    except ValueError as exc:
        raise ValidationFailed(str(exc)) from exc


class AccountService(LifecycleService):
    """Lifecycle of accounts. Deleting an account never touches its documents."""

    def __init__(
        self,
        store: Optional[EntityStore] = None,
        composer: Optional[QueryComposer] = None,
        hasher: Optional[CredentialHasher] = None,
    ) -> None:
        store = store or EntityStore(ACCOUNTS)
        super().__init__(store, composer or QueryComposer(ACCOUNTS), AccountRecord.from_model)
        self.hasher = hasher or Argon2Hasher()
        self.auth = AuthService(store, self.hasher)

    def create(self, handle: str, email: str, credential: str, role: Optional[str] = None) -> AccountRecord:
        if not credential:
            raise ValidationFailed("Credential is required")
        fields = {
            "handle": (handle or "").strip(),
            "email": normalize_email(email),
            "credential_hash": self.hasher.hash(credential),
            "role": _role(role) if role else Role.STANDARD.value,
        }
        return self._create(fields)

    def _translate(self, patch: Mapping[str, Any]) -> dict:
        unknown = sorted(set(patch) - _PATCHABLE)
        if unknown:
            raise ValidationFailed(f"Cannot update account fields: {', '.join(unknown)}")
        changes: dict = {}
        if "handle" in patch:
            changes["handle"] = (patch["handle"] or "").strip()
        if "email" in patch:
            changes["email"] = normalize_email(patch["email"])
        if "role" in patch:
            changes["role"] = _role(patch["role"])
        if "credential" in patch:
            if not patch["credential"]:
                raise ValidationFailed("Credential cannot be empty")
            changes["credential_hash"] = self.hasher.hash(patch["credential"])
        return changes

    def update(self, account_id: int, patch: Mapping[str, Any]) -> AccountRecord:
        return self._update(account_id, self._translate(patch))

    def update_role(self, account_id: int, role: str) -> AccountRecord:
        return self._update(account_id, {"role": _role(role)})

    def get_by_email(self, email: str, visibility: Visibility = Visibility.ACTIVE_ONLY) -> AccountRecord:
        return self._get_by("email", normalize_email(email), visibility)

    def get_by_handle(self, handle: str, visibility: Visibility = Visibility.ACTIVE_ONLY) -> AccountRecord:
        return self._get_by("handle", (handle or "").strip(), visibility)

    def _get_by(self, field: str, value: str, visibility: Visibility) -> AccountRecord:
        with transaction() as session:
            row = self.store.find_by(session, field, value, visibility)
            if row is None:
                raise NotFound(self.kind.name, value)
            return AccountRecord.from_model(row)

    def authenticate(self, email: str, credential: str) -> Principal:
        return self.auth.authenticate(email, credential)

    def stats(self) -> AccountStats:
        total, active, deleted = self._counts()
        with transaction() as session:
            by_role = {
                role.value: self.store.count(session, Visibility.ACTIVE_ONLY, {"role": role.value})
                for role in Role
            }
        return AccountStats(total=total, active=active, deleted=deleted, by_role=by_role)
