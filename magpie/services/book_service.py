# magpie/services/book_service.py

import logging
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from magpie.auth.context import UserContext
from magpie.auth.guard import OwnershipGuard
from magpie.auth.permissions import DEFAULT_SHARED_PERMISSIONS, Operation, PermissionsUpdate
from magpie.errors import AuthenticationRequired, CatalogError, ConflictError, ValidationError
from magpie.sa.models import Book
from magpie.sa.repositories.book import BookRepository, BookSearchCriteria, SORT_FIELDS
from magpie.utils.isbn import require_isbn

logger = logging.getLogger(__name__)

DESCRIPTIVE_FIELDS = (
    "title", "authors", "publisher", "edition", "publishing_year", "pages", "genre",
    "description", "cover_image_url", "goodreads_link", "physical_location",
    "condition", "notes", "is_favourite", "type",
)
LOAN_FIELDS = ("is_loaned", "loaned_to", "loaned_date", "expected_return_date")
NOT_NULLABLE = {"title", "authors", "publisher", "publishing_year", "is_favourite", "type", "is_loaned"}


@dataclass
class PaginatedResult:
    data: List[Book]
    total: int
    page: int
    limit: int
    total_pages: int


def _as_utc(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def loan_columns(loan_status: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Flatten a loan-status object into the book's loan columns."""
    loan_status = loan_status or {}
    return {
        "is_loaned": bool(loan_status.get("is_loaned", False)),
        "loaned_to": loan_status.get("loaned_to"),
        "loaned_date": _as_utc(loan_status.get("loaned_date")),
        "expected_return_date": _as_utc(loan_status.get("expected_return_date")),
    }


def book_columns(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map a create/update payload onto Book columns.

    Ownership fields are not columns a payload may set, so anything outside
    the descriptive and loan fields is dropped here.
    """
    columns = {}
    for field in DESCRIPTIVE_FIELDS:
        if field in data:
            value = data[field]
            if value is None and field in NOT_NULLABLE:
                continue
            columns[field] = value.value if hasattr(value, "value") else value
    if "loan_status" in data and data["loan_status"] is not None:
        columns.update(loan_columns(data["loan_status"]))
    return columns


class BookService:
    """Book use cases, each one checked by the ownership guard."""

    def __init__(self, session: Session, guard: OwnershipGuard):
        self.repo = BookRepository(session)
        self.guard = guard

    def _authorized(self, context: UserContext, isbn: str, operation: Operation) -> Book:
        isbn = require_isbn(isbn)
        book = self.repo.get_by_isbn(isbn)
        return self.guard.authorize(context, book, operation)

    @staticmethod
    def _require_authenticated(context: UserContext) -> None:
        if not context.is_authenticated:
            raise AuthenticationRequired("You must be logged in to access this resource")

    def list_books(
        self,
        context: UserContext,
        criteria: Optional[BookSearchCriteria] = None,
        sort_field: str = "title",
        sort_order: str = "asc",
        page: int = 1,
        limit: int = 20,
    ) -> PaginatedResult:
        self._require_authenticated(context)
        if sort_field not in SORT_FIELDS:
            raise ValidationError(f"Invalid sort field. Must be one of: {', '.join(SORT_FIELDS)}")
        if sort_order not in ("asc", "desc"):
            raise ValidationError("Invalid sort order. Must be 'asc' or 'desc'")
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")

        visibility = self.guard.visibility_filter(context)
        total = self.repo.count_books(visibility, criteria)
        books = self.repo.search_books(
            visibility,
            criteria,
            sort_field=sort_field,
            sort_order=sort_order,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return PaginatedResult(
            data=books,
            total=total,
            page=page,
            limit=limit,
            total_pages=(total + limit - 1) // limit,
        )

    def search_books(self, context: UserContext, query: str) -> List[Book]:
        self._require_authenticated(context)
        if not query or not query.strip():
            return []
        criteria = BookSearchCriteria(query=query.strip())
        visibility = self.guard.visibility_filter(context)
        return self.repo.search_books(visibility, criteria, limit=100)

    def get_book(self, context: UserContext, isbn: str) -> Book:
        return self._authorized(context, isbn, Operation.VIEW)

    def create_book(self, context: UserContext, data: Dict[str, Any]) -> Book:
        isbn = require_isbn(data.get("isbn", ""))
        self._require_authenticated(context)
        if self.repo.exists(isbn):
            raise ConflictError("Book with this ISBN already exists")

        book = self.repo.create_book({**book_columns(data), "isbn": isbn}, owner_id=context.id)
        logger.info("Book %s created by %s", isbn, context.id)
        return book

    @staticmethod
    def _operations_for(fields: Iterable[str]) -> List[Operation]:
        fields = set(fields)
        operations = []
        if fields & set(DESCRIPTIVE_FIELDS):
            operations.append(Operation.EDIT)
        if fields & set(LOAN_FIELDS):
            operations.append(Operation.LOAN)
        return operations

    def _authorize_any(self, context: UserContext, book: Book, operations: List[Operation]) -> None:
        error = None
        for operation in operations:
            try:
                self.guard.authorize(context, book, operation)
                return
            except CatalogError as e:
                error = error or e
        raise error

    def update_book(self, context: UserContext, isbn: str, changes: Dict[str, Any]) -> Book:
        """Apply an update; the incoming values overwrite the stored ones.

        Every field that changes needs its own permission: edit for the
        descriptive fields, loan for the loan status. Unchanged fields need
        nothing, so a loan-only member can replay a whole record as long as
        only the loan status differs. An update that changes nothing still
        needs one of the write permissions its fields belong to, or view
        when the body carries no fields at all.
        """
        book = self.repo.get_by_isbn(require_isbn(isbn))
        if book is None:
            # raises AuthenticationRequired or NotFoundError
            self.guard.authorize(context, book, Operation.EDIT)

        columns = book_columns(changes)
        changed = {field: value for field, value in columns.items() if getattr(book, field) != value}
        required = self._operations_for(changed)
        if required:
            for operation in required:
                self.guard.authorize(context, book, operation)
        else:
            self._authorize_any(context, book, self._operations_for(columns) or [Operation.VIEW])

        if changed:
            self.repo.update_book(book, changed)
            logger.info("Book %s updated by %s: %s", book.isbn, context.id, ", ".join(sorted(changed)))
        return book

    def delete_book(self, context: UserContext, isbn: str) -> None:
        book = self._authorized(context, isbn, Operation.REMOVE)
        self.repo.delete_book(book)
        logger.info("Book %s deleted by %s", book.isbn, context.id)

    def set_favourite(self, context: UserContext, isbn: str, is_favourite: bool) -> Book:
        book = self._authorized(context, isbn, Operation.EDIT)
        return self.repo.update_book(book, {"is_favourite": is_favourite})

    def update_loan_status(self, context: UserContext, isbn: str, loan_status: Dict[str, Any]) -> Book:
        book = self._authorized(context, isbn, Operation.LOAN)
        return self.repo.update_book(book, loan_columns(loan_status))

    def share_book(
        self,
        context: UserContext,
        isbn: str,
        identities: Iterable[str],
        permissions: Optional[PermissionsUpdate] = None,
        message: Optional[str] = None,
    ) -> Book:
        """Add identities to a book's shared-with set (owner only).

        Explicit permissions are laid over the view-only default and replace
        the stored set. Without them the first share sets the view-only
        default and later shares keep whatever is stored.
        """
        book = self._authorized(context, isbn, Operation.SHARE)
        identities = [identity.strip() for identity in identities if identity and identity.strip()]
        if not identities:
            raise ValidationError("At least one identity is required")

        if permissions is not None:
            DEFAULT_SHARED_PERMISSIONS.merged(permissions).apply_to(book)
        elif not book.shares:
            DEFAULT_SHARED_PERMISSIONS.apply_to(book)

        self.repo.add_shares(book, identities)
        logger.info(
            "Book %s shared by %s with %s%s",
            book.isbn, context.id, ", ".join(identities), f" ({message})" if message else "",
        )
        return book

    def remove_user_from_book(self, context: UserContext, isbn: str, user_id: str) -> Book:
        book = self._authorized(context, isbn, Operation.SHARE)
        self.repo.remove_share(book, user_id)
        logger.info("User %s removed from book %s by %s", user_id, book.isbn, context.id)
        return book
