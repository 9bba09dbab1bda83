"""
Datastore failures inside a transaction roll back and surface as StorageFailure.
"""
from __future__ import annotations

import logging

import pytest
from sqlalchemy import text

from folio.core.errors import StorageFailure
from folio.db.session import transaction
from folio.domain.kinds import ACCOUNTS, Visibility
from folio.repositories.entity_store import EntityStore


def test_datastore_error_rolls_back_and_is_logged(temp_db, caplog):
    store = EntityStore(ACCOUNTS)
    caplog.set_level(logging.ERROR, logger="folio.db.session")

    with pytest.raises(StorageFailure) as excinfo:
        with transaction() as session:
            store.create(session, {"handle": "quinn", "email": "quinn@x.com", "credential_hash": "h"})
            session.execute(text("SELECT * FROM missing_table"))

    assert excinfo.value.code == "storage_failure"
    with transaction() as session:
        assert store.count(session, Visibility.INCLUDE_DELETED) == 0

    records = [r for r in caplog.records if r.name == "folio.db.session"]
    assert records and records[-1].levelno == logging.ERROR
    assert records[-1].exc_info is not None


def test_domain_errors_pass_through_untouched(temp_db):
    store = EntityStore(ACCOUNTS)
    with pytest.raises(ValueError):
        with transaction() as session:
            store.create(session, {"handle": "ruth", "email": "ruth@x.com", "credential_hash": "h"})
            raise ValueError("boom")
    with transaction() as session:
        assert store.count(session, Visibility.INCLUDE_DELETED) == 0
