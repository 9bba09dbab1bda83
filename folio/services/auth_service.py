"""
Authentication use case: credential pair in, sanitized principal out.
"""

from __future__ import annotations

import logging
from typing import Optional

from folio.core.errors import InvalidCredentials
from folio.core.security import Argon2Hasher, CredentialHasher
from folio.db.session import transaction
from folio.domain.kinds import Visibility
from folio.domain.records import Principal
from folio.repositories.entity_store import EntityStore

logger = logging.getLogger(__name__)


class AuthService:
    """Checks an email/credential pair against the stored account."""

    def __init__(self, store: EntityStore, hasher: Optional[CredentialHasher] = None) -> None:
        self.store = store
        self.hasher = hasher or Argon2Hasher()

    def authenticate(self, email: str, credential: str) -> Principal:
        raw_email = (email or "").strip()
        if not raw_email or not credential:
            raise InvalidCredentials()
        with transaction() as session:
            # Lookup ignores lifecycle state: soft-deleted accounts can still sign in.
            account = self.store.find_by(session, "email", raw_email, Visibility.INCLUDE_DELETED)
            if account is None or not self.hasher.verify(credential, account.credential_hash):
                raise InvalidCredentials()
            if self.hasher.needs_rehash(account.credential_hash):
                account.credential_hash = self.hasher.hash(credential)
                session.flush()
            principal = Principal.from_model(account)
        logger.info("account authenticated", extra={"kind": "account", "entity_id": principal.id})
        return principal
