from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import String, asc, cast, desc, or_
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement
from ..models import Book, BookShare


@dataclass
class BookSearchCriteria:
    query: Optional[str] = None
    genre: Optional[str] = None
    type: Optional[str] = None
    is_favourite: Optional[bool] = None
    is_loaned: Optional[bool] = None
    condition: Optional[str] = None


SORT_FIELDS = {
    "title": Book.title,
    "author": cast(Book.authors, String),
    "genre": Book.genre,
    "publishingYear": Book.publishing_year,
    "createdAt": Book.created_at,
}


class BookRepository:
    """Repository for the canonical book records.

    Every listing method takes a visibility predicate and applies it before
    any other filter, so callers cannot forget to scope a query.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_by_isbn(self, isbn: str) -> Optional[Book]:
        """Get a book by its ISBN, regardless of who can see it."""
        return self.session.query(Book).filter(Book.isbn == isbn).one_or_none()

    def exists(self, isbn: str) -> bool:
        return self.session.query(Book.isbn).filter(Book.isbn == isbn).first() is not None

    def create_book(self, data: Dict[str, Any], owner_id: str) -> Book:
        """Insert a new book owned by owner_id.

        Args:
            data: Column values keyed by model attribute name
            owner_id: Identity that becomes the sole owner
        """
        book = Book(owner_id=owner_id, **data)
        self.session.add(book)
        self.session.commit()
        return book

    def update_book(self, book: Book, changes: Dict[str, Any]) -> Book:
        """Overwrite the given columns of a book (last writer wins)."""
        for field, value in changes.items():
            setattr(book, field, value)
        self.session.commit()
        return book

    def delete_book(self, book: Book) -> None:
        self.session.delete(book)
        self.session.commit()

    def add_shares(self, book: Book, user_ids: Iterable[str]) -> Book:
        """Add identities to the shared-with set; repeats and the owner are skipped."""
        current = set(book.shared_with)
        for user_id in user_ids:
            if user_id == book.owner_id or user_id in current:
                continue
            book.shares.append(BookShare(user_id=user_id))
            current.add(user_id)
        self.session.commit()
        return book

    def remove_share(self, book: Book, user_id: str) -> Book:
        book.shares = [share for share in book.shares if share.user_id != user_id]
        self.session.commit()
        return book

    def _filtered(self, visibility: ColumnElement[bool], criteria: Optional[BookSearchCriteria]):
        base_query = self.session.query(Book).filter(visibility)
        if criteria is None:
            return base_query

        if criteria.query and criteria.query.strip():
            term = f"%{criteria.query.strip()}%"
            base_query = base_query.filter(
                or_(
                    Book.title.ilike(term),
                    cast(Book.authors, String).ilike(term),
                    Book.isbn.ilike(term),
                )
            )
        if criteria.genre:
            base_query = base_query.filter(Book.genre == criteria.genre)
        if criteria.type:
            base_query = base_query.filter(Book.type == criteria.type)
        if criteria.is_favourite is not None:
            base_query = base_query.filter(Book.is_favourite == criteria.is_favourite)
        if criteria.is_loaned is not None:
            base_query = base_query.filter(Book.is_loaned == criteria.is_loaned)
        if criteria.condition:
            base_query = base_query.filter(Book.condition == criteria.condition)
        return base_query

    def search_books(
        self,
        visibility: ColumnElement[bool],
        criteria: Optional[BookSearchCriteria] = None,
        sort_field: str = "title",
        sort_order: str = "asc",
        limit: int = 20,
        offset: int = 0,
    ) -> List[Book]:
        """Search visible books with optional filters, sorting and pagination.

        Args:
            visibility: Predicate from OwnershipGuard.visibility_filter
            criteria: Text and field filters
            sort_field: One of SORT_FIELDS
            sort_order: asc or desc
            limit: Maximum number of results to return
            offset: Number of records to skip
        """
        column = SORT_FIELDS.get(sort_field, Book.title)
        ordering = desc(column) if sort_order == "desc" else asc(column)
        return (
            self._filtered(visibility, criteria)
            .order_by(ordering, Book.isbn)
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_books(self, visibility: ColumnElement[bool], criteria: Optional[BookSearchCriteria] = None) -> int:
        return self._filtered(visibility, criteria).count()
