from __future__ import annotations

import pytest

from folio.core import config as core_config
from folio.core.errors import DuplicateValue, Forbidden, NotFound, ParentNotFound, ValidationFailed
from folio.domain.kinds import Visibility
from folio.services import build_services


def test_create_requires_existing_owner(services):
    with pytest.raises(ParentNotFound):
        services.documents.create("Orphan", "body", owner_id=42)
    assert services.documents.stats().total == 0


def test_soft_deleted_owner_still_counts_as_parent(services, alice):
    services.accounts.soft_delete(alice.id)
    doc = services.documents.create("Late entry", "", owner_id=alice.id)
    assert doc.owner_id == alice.id


def test_duplicate_title_rejected(services, alice):
    services.documents.create("T1", "first", owner_id=alice.id)
    with pytest.raises(DuplicateValue) as excinfo:
        services.documents.create("T1", "second", owner_id=alice.id)
    assert excinfo.value.field == "title"
    assert services.documents.stats().total == 1


def test_title_stays_taken_after_soft_delete(services, alice):
    doc = services.documents.create("T1", "", owner_id=alice.id)
    services.documents.soft_delete(doc.id)
    with pytest.raises(DuplicateValue):
        services.documents.create("T1", "", owner_id=alice.id)
    services.documents.purge(doc.id)
    assert services.documents.create("T1", "", owner_id=alice.id).title == "T1"


def test_ownership_checked_only_when_actor_given(services, alice):
    bob = services.accounts.create("bob", "bob@x.com", "Secret1A")
    doc = services.documents.create("Plan", "v1", owner_id=alice.id)

    with pytest.raises(Forbidden):
        services.documents.update(doc.id, {"body": "v2"}, actor_id=bob.id)
    with pytest.raises(Forbidden):
        services.documents.soft_delete(doc.id, actor_id=bob.id)

    assert services.documents.update(doc.id, {"body": "v2"}, actor_id=alice.id).body == "v2"
    assert services.documents.update(doc.id, {"body": "v3"}).body == "v3"
    assert services.documents.soft_delete(doc.id).deleted_at is not None


def test_enforced_ownership_requires_actor(temp_db, monkeypatch):
    monkeypatch.setenv("ENFORCE_OWNERSHIP", "true")
    core_config.get_settings.cache_clear()
    strict = build_services(core_config.get_settings())
    owner = strict.accounts.create("owner", "owner@x.com", "Secret1A")
    doc = strict.documents.create("Locked", "", owner_id=owner.id)

    with pytest.raises(Forbidden):
        strict.documents.update(doc.id, {"body": "x"})
    with pytest.raises(Forbidden):
        strict.documents.batch_soft_delete([doc.id])
    assert strict.documents.update(doc.id, {"body": "x"}, actor_id=owner.id).body == "x"

    strict.documents.soft_delete(doc.id, actor_id=owner.id)
    with pytest.raises(Forbidden):
        strict.documents.restore(doc.id)
    with pytest.raises(Forbidden):
        strict.documents.purge(doc.id)
    assert strict.documents.restore(doc.id, actor_id=owner.id).deleted_at is None


def test_owner_and_title_rules_on_update(services, alice):
    first = services.documents.create("First", "", owner_id=alice.id)
    services.documents.create("Second", "", owner_id=alice.id)
    with pytest.raises(DuplicateValue):
        services.documents.update(first.id, {"title": "Second"})
    with pytest.raises(ValidationFailed):
        services.documents.update(first.id, {"owner_id": alice.id + 1})
    assert services.documents.update(first.id, {"title": " First "}).title == "First"


def test_batch_soft_delete_scoped_to_actor(services, alice):
    bob = services.accounts.create("bob", "bob@x.com", "Secret1A")
    a1 = services.documents.create("A1", "", owner_id=alice.id)
    a2 = services.documents.create("A2", "", owner_id=alice.id)
    b1 = services.documents.create("B1", "", owner_id=bob.id)

    assert services.documents.batch_soft_delete([a1.id, b1.id, 999], actor_id=alice.id) == 1
    assert services.documents.batch_soft_delete([a1.id, a2.id, b1.id]) == 2
    assert services.documents.stats().deleted == 3


def test_restore_and_purge_lifecycle(services, alice):
    doc = services.documents.create("Cycle", "", owner_id=alice.id)
    services.documents.soft_delete(doc.id)
    with pytest.raises(NotFound):
        services.documents.get(doc.id)
    assert services.documents.get(doc.id, Visibility.INCLUDE_DELETED).deleted_at is not None
    assert services.documents.restore(doc.id).deleted_at is None
    services.documents.purge(doc.id)
    with pytest.raises(NotFound):
        services.documents.get(doc.id, Visibility.INCLUDE_DELETED)


def test_search_and_owner_listing(services, alice):
    bob = services.accounts.create("bob", "bob@x.com", "Secret1A")
    services.documents.create("Roadmap", "quarterly goals", owner_id=alice.id)
    services.documents.create("Minutes", "goals reviewed", owner_id=bob.id)
    services.documents.create("Budget", "numbers", owner_id=alice.id)

    found = services.documents.search("GOALS")
    assert sorted(d.title for d in found.items) == ["Minutes", "Roadmap"]

    mine = services.documents.search("goals", {"owner_id": alice.id})
    assert [d.title for d in mine.items] == ["Roadmap"]

    owned = services.documents.list_by_owner(alice.id, sort={"sort_by": "title", "sort_order": "ASC"})
    assert [d.title for d in owned.items] == ["Budget", "Roadmap"]
    assert owned.pagination.total_pages == 1

    with pytest.raises(ValidationFailed):
        services.documents.search("   ")


def test_stats_scoped_to_owner(services, alice):
    bob = services.accounts.create("bob", "bob@x.com", "Secret1A")
    keep = services.documents.create("Keep", "", owner_id=alice.id)
    drop = services.documents.create("Drop", "", owner_id=alice.id)
    services.documents.create("Other", "", owner_id=bob.id)
    services.documents.soft_delete(drop.id)

    stats = services.documents.stats(owner_id=alice.id)
    assert (stats.total, stats.active, stats.deleted) == (2, 1, 1)
    assert services.documents.stats().total == 3
    assert services.documents.get(keep.id).owner_id == alice.id


def test_account_purge_does_not_cascade(services, alice):
    doc = services.documents.create("Left behind", "", owner_id=alice.id)
    services.accounts.soft_delete(alice.id)
    assert services.documents.get(doc.id).deleted_at is None

    services.accounts.purge(alice.id)
    with pytest.raises(NotFound):
        services.accounts.get(alice.id, Visibility.INCLUDE_DELETED)
    orphan = services.documents.get(doc.id)
    assert orphan.owner_id == alice.id
    assert orphan.owner is None
    assert orphan.to_dict()["owner"] is None


def test_documents_carry_owner_summary(services, alice):
    doc = services.documents.create("Shared", "notes", owner_id=alice.id)
    expected = {"id": alice.id, "handle": "alice", "email": "a@x.com"}

    assert doc.to_dict()["owner"] == expected
    assert services.documents.get(doc.id).to_dict()["owner"] == expected
    assert [d.owner.handle for d in services.documents.list().items] == ["alice"]
    assert services.documents.search("notes").items[0].owner.email == "a@x.com"
    assert services.documents.list_by_owner(alice.id).items[0].owner.id == alice.id
    assert "credential_hash" not in doc.to_dict()["owner"]

    services.accounts.soft_delete(alice.id)
    assert services.documents.get(doc.id).owner.handle == "alice"


def test_restore_and_purge_check_ownership(services, alice):
    bob = services.accounts.create("bob", "bob@x.com", "Secret1A")
    doc = services.documents.create("Guarded", "", owner_id=alice.id)
    services.documents.soft_delete(doc.id)

    with pytest.raises(Forbidden):
        services.documents.restore(doc.id, actor_id=bob.id)
    assert services.documents.restore(doc.id, actor_id=alice.id).deleted_at is None

    with pytest.raises(Forbidden):
        services.documents.purge(doc.id, actor_id=bob.id)
    services.documents.purge(doc.id, actor_id=alice.id)
    with pytest.raises(NotFound):
        services.documents.get(doc.id, Visibility.INCLUDE_DELETED)
