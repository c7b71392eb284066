# tests/test_auth/test_guard.py
import pytest

from magpie.auth.context import ANONYMOUS, AuthenticatedUser
from magpie.auth.guard import OwnershipGuard
from magpie.auth.permissions import (
    BookPermissions, Operation, FULL_PERMISSIONS, NO_PERMISSIONS,
)
from magpie.errors import AuthenticationRequired, AuthorizationError, NotFoundError
from magpie.sa.models import Book, BookShare

ALICE = AuthenticatedUser(id="alice", email="alice@example.com", name="Alice")
BOB = AuthenticatedUser(id="bob", email="bob@example.com", name="Bob")
CAROL = AuthenticatedUser(id="carol", email="carol@example.com", name="Carol")


def make_book(isbn="9780132350884", owner="alice", shared=(), **flags):
    permissions = dict(can_view=True, can_edit=False, can_loan=False, can_share=True, can_remove=True)
    permissions.update(flags)
    return Book(
        isbn=isbn,
        title="Clean Code",
        authors=["Robert C. Martin"],
        publisher="Prentice Hall",
        publishing_year=2008,
        type="personal",
        owner_id=owner,
        shares=[BookShare(isbn=isbn, user_id=user_id) for user_id in shared],
        **permissions,
    )


@pytest.mark.parametrize("operation", list(Operation))
def test_owner_may_do_everything(operation):
    guard = OwnershipGuard()
    book = make_book(can_view=False)
    assert guard.authorize(ALICE, book, operation) is book
    assert guard.permissions_for(ALICE, book) == FULL_PERMISSIONS


@pytest.mark.parametrize("operation", list(Operation))
def test_stranger_sees_not_found_for_every_operation(operation):
    """A book the caller cannot see is indistinguishable from a missing one."""
    guard = OwnershipGuard()
    book = make_book(shared=["bob"], can_edit=True, can_loan=True)

    with pytest.raises(NotFoundError) as hidden:
        guard.authorize(CAROL, book, operation)
    with pytest.raises(NotFoundError) as missing:
        guard.authorize(CAROL, None, operation)
    assert hidden.value.status_code == missing.value.status_code
    assert hidden.value.message == missing.value.message
    assert guard.permissions_for(CAROL, book) == NO_PERMISSIONS


@pytest.mark.parametrize("operation", list(Operation))
def test_anonymous_needs_authentication(operation):
    guard = OwnershipGuard()
    with pytest.raises(AuthenticationRequired):
        guard.authorize(ANONYMOUS, make_book(), operation)
    with pytest.raises(AuthenticationRequired):
        guard.authorize(ANONYMOUS, None, operation)


def test_anonymous_may_view_public_books_only():
    guard = OwnershipGuard(public_isbns=["9780132350884"])
    book = make_book()
    assert guard.authorize(ANONYMOUS, book, Operation.VIEW) is book
    with pytest.raises(AuthenticationRequired):
        guard.authorize(ANONYMOUS, book, Operation.EDIT)
    # Strangers may read a public book too, but nothing else
    assert guard.authorize(CAROL, book, Operation.VIEW) is book
    with pytest.raises(NotFoundError):
        guard.authorize(CAROL, book, Operation.LOAN)


def test_shared_user_gets_stored_permissions():
    guard = OwnershipGuard()
    book = make_book(shared=["bob"], can_loan=True)

    assert guard.authorize(BOB, book, Operation.VIEW) is book
    assert guard.authorize(BOB, book, Operation.LOAN) is book
    with pytest.raises(AuthorizationError):
        guard.authorize(BOB, book, Operation.EDIT)


@pytest.mark.parametrize("operation", [Operation.SHARE, Operation.REMOVE])
def test_share_and_remove_stay_with_the_owner(operation):
    guard = OwnershipGuard()
    book = make_book(shared=["bob"], can_edit=True, can_loan=True, can_share=True, can_remove=True)

    with pytest.raises(AuthorizationError):
        guard.authorize(BOB, book, operation)
    permissions = guard.permissions_for(BOB, book)
    assert permissions == BookPermissions(can_view=True, can_edit=True, can_loan=True)
    assert not permissions.allows(operation)


def test_shared_user_without_view_is_forbidden():
    guard = OwnershipGuard()
    book = make_book(shared=["bob"], can_view=False)
    with pytest.raises(AuthorizationError):
        guard.authorize(BOB, book, Operation.VIEW)


def test_visibility_filter_for_anonymous_without_public_books(db_session, users):
    guard = OwnershipGuard()
    predicate = guard.visibility_filter(ANONYMOUS)
    assert db_session.query(Book).filter(predicate).count() == 0
