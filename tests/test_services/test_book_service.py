# tests/test_services/test_book_service.py
from datetime import datetime, UTC

import pytest

from magpie.auth.context import ANONYMOUS
from magpie.auth.permissions import BookPermissions, PermissionsUpdate
from magpie.errors import (
    AuthenticationRequired, AuthorizationError, ConflictError, NotFoundError, ValidationError,
)
from magpie.sa.repositories.book import BookSearchCriteria
from magpie.services.book_service import BookService
from helpers import book_data

ISBN = "9780132350884"


@pytest.fixture
def service(db_session, guard):
    return BookService(db_session, guard)


@pytest.fixture
def book(service, alice):
    return service.create_book(alice, book_data(ISBN))


def test_create_book_owned_by_creator(service, alice):
    book = service.create_book(alice, book_data("978-0-13-235088-4", owner_id="mallory", can_edit=False))
    assert book.isbn == ISBN
    assert book.owner_id == "alice"
    assert book.shared_with == []
    assert BookPermissions.from_book(book).can_edit


def test_create_book_checks(service, alice, book):
    with pytest.raises(ConflictError):
        service.create_book(alice, book_data(ISBN))
    with pytest.raises(ValidationError):
        service.create_book(alice, book_data("12345"))
    with pytest.raises(AuthenticationRequired):
        service.create_book(ANONYMOUS, book_data("9780201633610"))


def test_update_by_owner_overwrites_fields(service, alice, book):
    updated = service.update_book(alice, ISBN, {"title": "Clean Code (2nd ed.)", "pages": 464})
    assert updated.title == "Clean Code (2nd ed.)"
    assert updated.pages == 464


def test_update_ignores_ownership_fields(service, alice, book):
    service.update_book(alice, ISBN, {"owner_id": "bob", "shared_with": ["carol"], "can_view": False})
    assert book.owner_id == "alice"
    assert book.shared_with == []
    assert book.can_view


def test_view_only_member_cannot_edit(service, alice, bob, book):
    service.share_book(alice, ISBN, ["bob"], PermissionsUpdate(can_view=True, can_edit=False))
    assert service.get_book(bob, ISBN).isbn == ISBN
    with pytest.raises(AuthorizationError):
        service.update_book(bob, ISBN, {"title": "Dirty Code"})
    with pytest.raises(AuthorizationError):
        service.set_favourite(bob, ISBN, True)


def test_loan_only_member_can_replay_whole_record(service, alice, bob, book):
    """Unchanged descriptive fields in an update do not need the edit permission."""
    service.share_book(alice, ISBN, ["bob"], PermissionsUpdate(can_loan=True))
    whole_record = dict(book_data(ISBN), loan_status={"is_loaned": True, "loaned_to": "Sam"})

    updated = service.update_book(bob, ISBN, whole_record)
    assert updated.is_loaned
    assert updated.loaned_to == "Sam"

    with pytest.raises(AuthorizationError):
        service.update_book(bob, ISBN, dict(whole_record, title="Something Else"))


def test_update_loan_status(service, alice, book):
    due = datetime(2026, 12, 1, tzinfo=UTC)
    updated = service.update_loan_status(alice, ISBN, {"is_loaned": True, "loaned_to": "Sam", "expected_return_date": due})
    assert updated.is_loaned
    assert updated.expected_return_date == due

    returned = service.update_loan_status(alice, ISBN, {"is_loaned": False})
    assert not returned.is_loaned
    assert returned.loaned_to is None


def test_stranger_gets_not_found_everywhere(service, carol, book):
    for call in (
        lambda: service.get_book(carol, ISBN),
        lambda: service.update_book(carol, ISBN, {"title": "Mine now"}),
        lambda: service.delete_book(carol, ISBN),
        lambda: service.set_favourite(carol, ISBN, True),
        lambda: service.update_loan_status(carol, ISBN, {"is_loaned": True}),
        lambda: service.share_book(carol, ISBN, ["carol"]),
        lambda: service.remove_user_from_book(carol, ISBN, "bob"),
    ):
        with pytest.raises(NotFoundError):
            call()


def test_share_defaults_to_view_only(service, alice, book):
    shared = service.share_book(alice, ISBN, ["bob"])
    assert BookPermissions.from_book(shared) == BookPermissions(can_view=True)


def test_share_explicit_permissions_replace_stored(service, alice, book):
    service.share_book(alice, ISBN, ["bob"], PermissionsUpdate(can_loan=True))
    assert BookPermissions.from_book(book) == BookPermissions(can_view=True, can_loan=True)

    # A later share without permissions keeps the stored set
    service.share_book(alice, ISBN, ["carol"])
    assert BookPermissions.from_book(book) == BookPermissions(can_view=True, can_loan=True)
    assert book.shared_with == ["bob", "carol"]


def test_owner_never_in_shared_with(service, alice, bob, book):
    service.share_book(alice, ISBN, ["alice", "bob", "bob"])
    assert book.shared_with == ["bob"]
    service.remove_user_from_book(alice, ISBN, "bob")
    service.remove_user_from_book(alice, ISBN, "alice")
    assert "alice" not in book.shared_with
    assert book.shared_with == []


def test_share_needs_identities(service, alice, book):
    with pytest.raises(ValidationError):
        service.share_book(alice, ISBN, ["", "  "])


def test_only_owner_shares_and_deletes(service, alice, bob, book):
    service.share_book(alice, ISBN, ["bob"], PermissionsUpdate(can_edit=True, can_share=True, can_remove=True))
    with pytest.raises(AuthorizationError):
        service.share_book(bob, ISBN, ["carol"])
    with pytest.raises(AuthorizationError):
        service.delete_book(bob, ISBN)

    service.delete_book(alice, ISBN)
    with pytest.raises(NotFoundError):
        service.get_book(alice, ISBN)


def test_list_books_paginates_visible_books(service, alice, bob):
    for index, isbn in enumerate(["9780000000001", "9780000000002", "9780000000003"]):
        service.create_book(alice, book_data(isbn, title=f"Volume {index + 1}"))
    service.share_book(alice, "9780000000002", ["bob"])

    page = service.list_books(alice, page=2, limit=2)
    assert page.total == 3
    assert page.total_pages == 2
    assert [book.title for book in page.data] == ["Volume 3"]

    bobs = service.list_books(bob, BookSearchCriteria(query="Volume"))
    assert [book.isbn for book in bobs.data] == ["9780000000002"]


def test_list_books_validation(service, alice):
    with pytest.raises(ValidationError):
        service.list_books(alice, sort_field="colour")
    with pytest.raises(ValidationError):
        service.list_books(alice, sort_order="sideways")
    with pytest.raises(AuthenticationRequired):
        service.list_books(ANONYMOUS)


def test_search_books(service, alice, book):
    assert [found.isbn for found in service.search_books(alice, "clean")] == [ISBN]
    assert service.search_books(alice, "   ") == []


def test_edit_member_without_view_can_update(service, alice, bob, book):
    """Editing a book does not require the view permission."""
    service.share_book(alice, ISBN, ["bob"], PermissionsUpdate(can_view=False, can_edit=True))

    updated = service.update_book(bob, ISBN, {"title": "Clean Code (annotated)"})
    assert updated.title == "Clean Code (annotated)"
    assert service.set_favourite(bob, ISBN, True).is_favourite
    with pytest.raises(AuthorizationError):
        service.get_book(bob, ISBN)
    with pytest.raises(AuthorizationError):
        service.update_book(bob, ISBN, {"loan_status": {"is_loaned": True, "loaned_to": "Sam"}})


def test_unchanged_update_still_needs_a_write_permission(service, alice, bob, book):
    service.share_book(alice, ISBN, ["bob"], PermissionsUpdate(can_view=True))
    with pytest.raises(AuthorizationError):
        service.update_book(bob, ISBN, {"title": book.title})
    with pytest.raises(AuthorizationError):
        service.update_book(bob, ISBN, book_data(ISBN))
    assert service.update_book(bob, ISBN, {}).isbn == ISBN


def test_unchanged_whole_record_passes_for_loan_member(service, alice, bob, book):
    service.share_book(alice, ISBN, ["bob"], PermissionsUpdate(can_view=False, can_loan=True))
    whole_record = dict(book_data(ISBN), loan_status={"is_loaned": False})
    assert service.update_book(bob, ISBN, whole_record).title == book.title


def test_update_missing_book(service, alice):
    with pytest.raises(NotFoundError):
        service.update_book(alice, "9780201633610", {"title": "Design Patterns"})
    with pytest.raises(AuthenticationRequired):
        service.update_book(ANONYMOUS, "9780201633610", {"title": "Design Patterns"})
