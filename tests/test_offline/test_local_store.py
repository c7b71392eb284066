# tests/test_offline/test_local_store.py
import pytest

from magpie.errors import NotFoundError, ValidationError
from magpie.offline.models import LocalChange
from magpie.offline.store import LAST_SYNC_KEY, ChangeAction, ChangeEntry
from helpers import book_payload

ISBN = "1111111111111"


def test_save_record_queues_create_then_update(store):
    created = store.save_record(book_payload(ISBN))
    assert created.action == ChangeAction.CREATE
    assert created.synced is False
    assert created.isbn == ISBN

    updated = store.save_record(dict(store.get_record(ISBN), title="Clean Code (annotated)"))
    assert updated.action == ChangeAction.UPDATE
    assert updated.data["title"] == "Clean Code (annotated)"

    assert [change.id for change in store.list_unsynced()] == [created.id, updated.id]
    assert store.pending_isbns() == [ISBN]
    assert store.get_record(ISBN)["title"] == "Clean Code (annotated)"


def test_save_record_normalizes_isbn(store):
    change = store.save_record(book_payload("111-1111111-111"))
    assert change.isbn == ISBN
    assert store.get_record(ISBN)["isbn"] == ISBN
    with pytest.raises(ValidationError):
        store.save_record(book_payload("not-an-isbn"))
    assert store.list_unsynced() == [change]


def test_delete_record_queues_delete(store):
    store.save_record(book_payload(ISBN))
    change = store.delete_record(ISBN)
    assert change.action == ChangeAction.DELETE
    assert store.get_record(ISBN) is None
    assert [entry.action for entry in store.list_unsynced()] == [ChangeAction.CREATE, ChangeAction.DELETE]


def test_favourite_and_loan_helpers(store):
    store.save_record(book_payload(ISBN))
    store.set_favourite(ISBN, True)
    store.update_loan_status(ISBN, {"isLoaned": True, "loanedTo": "Sam"})

    record = store.get_record(ISBN)
    assert record["isFavourite"] is True
    assert record["loanStatus"] == {"isLoaned": True, "loanedTo": "Sam"}
    assert len(store.list_unsynced()) == 3

    with pytest.raises(NotFoundError):
        store.set_favourite("9999999999999", True)


def test_mark_synced_is_idempotent(store):
    change = store.save_record(book_payload(ISBN))
    assert store.mark_synced(change.id)
    before = (store.list_records(), store.list_changes())
    assert store.mark_synced(change.id)
    assert (store.list_records(), store.list_changes()) == before
    assert store.list_unsynced() == []
    assert store.mark_synced("no-such-change") is False


def test_change_entries_only_flip_synced(store):
    change = store.save_record(book_payload(ISBN))
    store.mark_synced(change.id)
    [stored] = store.list_changes()
    assert stored.synced is True
    assert (stored.id, stored.isbn, stored.action, stored.data, stored.timestamp) == (
        change.id, change.isbn, change.action, change.data, change.timestamp,
    )


def test_purge_synced_keeps_pending(store):
    first = store.save_record(book_payload(ISBN))
    second = store.save_record(book_payload("9780201633610", title="Design Patterns"))
    store.mark_synced(first.id)

    assert store.purge_synced() == 1
    assert store.list_unsynced() == [second]
    with store.database.get_db() as session:
        assert session.query(LocalChange).count() == 1


def test_upsert_record_clears_needs_sync(store):
    store.save_record(book_payload(ISBN))
    store.upsert_record(dict(book_payload(ISBN), ownerId="alice"))
    store.upsert_record(dict(book_payload(ISBN), ownerId="alice"))
    assert store.pending_isbns() == []
    assert store.list_records() == [dict(book_payload(ISBN), ownerId="alice")]


def test_metadata(store):
    assert store.get_metadata(LAST_SYNC_KEY) is None
    assert store.get_metadata(LAST_SYNC_KEY, "never") == "never"
    store.set_metadata(LAST_SYNC_KEY, "2026-10-19T08:00:00+00:00")
    assert store.get_metadata(LAST_SYNC_KEY) == "2026-10-19T08:00:00+00:00"


def test_search_records(store):
    store.upsert_record(book_payload(ISBN))
    store.upsert_record(book_payload("9780201633610", title="Design Patterns", authors=["Erich Gamma"]))
    assert [record["isbn"] for record in store.search_records("gamma")] == ["9780201633610"]
    assert [record["isbn"] for record in store.search_records("11111")] == [ISBN]


def test_change_entry_wire_shape(store):
    change = store.append_change(ChangeAction.DELETE, ISBN, {"isbn": ISBN})
    wire = change.to_wire()
    assert set(wire) == {"id", "isbn", "action", "data", "timestamp", "synced"}
    assert wire["action"] == "delete"
    assert wire["synced"] is False
    assert isinstance(change, ChangeEntry)
