"""
High-level use cases for the Folio backend.

Routers (FastAPI endpoints) call these services instead of touching sessions
or the entity stores directly. ``build_services`` wires one account service
and one document service from Settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from folio.core.config import Settings, get_settings
from folio.core.security import CredentialHasher
from folio.domain.kinds import ACCOUNTS, DOCUMENTS
from folio.domain.query import QueryComposer
from folio.repositories.entity_store import EntityStore
from folio.services.account_service import AccountService
from folio.services.document_service import DocumentService
from folio.services.guards import RelationGuard


@dataclass
class Services:
    accounts: AccountService
    documents: DocumentService


def build_services(settings: Optional[Settings] = None, hasher: Optional[CredentialHasher] = None) -> Services:
    settings = settings or get_settings()
    redundant = settings.allow_redundant_soft_delete
    account_store = EntityStore(ACCOUNTS, allow_redundant_soft_delete=redundant)
    document_store = EntityStore(DOCUMENTS, allow_redundant_soft_delete=redundant)

    def composer(kind):
        return QueryComposer(kind, default_limit=settings.default_page_size, max_limit=settings.max_page_size)

    accounts = AccountService(account_store, composer(ACCOUNTS), hasher)
    documents = DocumentService(
        document_store,
        composer(DOCUMENTS),
        RelationGuard(account_store, enforce_ownership=settings.enforce_ownership),
    )
    return Services(accounts=accounts, documents=documents)


__all__ = ["AccountService", "DocumentService", "Services", "build_services"]
