# magpie/auth/guard.py
import logging
from typing import Iterable, Optional

from sqlalchemy import false, or_
from sqlalchemy.sql.elements import ColumnElement

from magpie.auth.context import UserContext
from magpie.auth.permissions import (
    BookPermissions, Operation, OWNER_ONLY_OPERATIONS,
    FULL_PERMISSIONS, NO_PERMISSIONS,
)
from magpie.errors import AuthenticationRequired, AuthorizationError, NotFoundError
from magpie.sa.models import Book, BookShare

logger = logging.getLogger(__name__)

_PUBLIC_READ = BookPermissions(can_view=True)


class OwnershipGuard:
    """Decides, per request, what an identity may do with a book.

    The owner may do everything. Members of the shared-with set get the
    book's stored permissions, minus share and remove which stay with the
    owner. Everyone else gets nothing, and the book is reported as not
    found so its existence does not leak.
    """

    def __init__(self, public_isbns: Iterable[str] = ()):
        self.public_isbns = frozenset(public_isbns)

    def is_public(self, book: Book) -> bool:
        return book.isbn in self.public_isbns

    def permissions_for(self, context: UserContext, book: Optional[Book]) -> BookPermissions:
        if book is None:
            return NO_PERMISSIONS

        if context.is_authenticated:
            if book.owner_id == context.id:
                return FULL_PERMISSIONS
            if context.id in book.shared_with:
                stored = BookPermissions.from_book(book)
                return stored.model_copy(update={"can_share": False, "can_remove": False})

        if self.is_public(book):
            return _PUBLIC_READ
        return NO_PERMISSIONS

    def authorize(self, context: UserContext, book: Optional[Book], operation: Operation) -> Book:
        """Return the book if the operation is allowed, raise otherwise.

        Raises:
            AuthenticationRequired: anonymous caller on anything but a public read
            AuthorizationError: shared member without the needed permission
            NotFoundError: missing book, or a book the caller cannot see
        """
        operation = Operation(operation)

        if not context.is_authenticated:
            if book is not None and operation == Operation.VIEW and self.is_public(book):
                return book
            raise AuthenticationRequired("You must be logged in to access this resource")

        if book is None:
            raise NotFoundError()

        if book.owner_id == context.id:
            return book

        if context.id in book.shared_with:
            if operation in OWNER_ONLY_OPERATIONS:
                logger.info("Denied %s on %s for shared user %s: owner only", operation.value, book.isbn, context.id)
                raise AuthorizationError(f"Only the owner can {operation.value} this book")
            if self.permissions_for(context, book).allows(operation):
                return book
            logger.info("Denied %s on %s for shared user %s", operation.value, book.isbn, context.id)
            raise AuthorizationError(f"You do not have permission to {operation.value} this book")

        if operation == Operation.VIEW and self.is_public(book):
            return book

        raise NotFoundError()

    def visibility_filter(self, context: UserContext) -> ColumnElement[bool]:
        """SQL predicate selecting the books the caller can see.

        Applied before any search or field filter.
        """
        public = Book.isbn.in_(sorted(self.public_isbns)) if self.public_isbns else false()
        if not context.is_authenticated:
            return public

        return or_(
            Book.owner_id == context.id,
            Book.shares.any(BookShare.user_id == context.id),
            public,
        )
