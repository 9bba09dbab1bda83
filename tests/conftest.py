from __future__ import annotations

import sys
from pathlib import Path

import pytest
from sqlalchemy import event

# Make the folio package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from folio.core import config as core_config  # noqa: E402
from folio.db import create_tables  # noqa: E402
from folio.db import session as db_session  # noqa: E402
from folio.services import build_services  # noqa: E402

_FLAG_VARS = ("ALLOW_REDUNDANT_SOFT_DELETE", "ENFORCE_OWNERSHIP", "DEFAULT_PAGE_SIZE", "MAX_PAGE_SIZE")


def _enable_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _reset_caches() -> None:
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def temp_db(tmp_path, monkeypatch):
    """Point DATABASE_URL at a throwaway SQLite file and build the schema."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    for name in _FLAG_VARS:
        monkeypatch.delenv(name, raising=False)
    _reset_caches()
    # SQLite leaves constraint enforcement off unless asked
    event.listen(db_session.get_engine(), "connect", _enable_foreign_keys)

    create_tables.drop_all()
    create_tables.create_all()

    yield db_file

    engine = db_session.get_engine()
    try:
        create_tables.drop_all()
    except Exception:
        pass
    try:
        engine.dispose()
    except Exception:
        pass
    _reset_caches()


@pytest.fixture()
def services(temp_db):
    return build_services(core_config.get_settings())


@pytest.fixture()
def alice(services):
    return services.accounts.create("alice", "a@x.com", "Secret1A")
