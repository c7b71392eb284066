# api/schemas/book.py
from datetime import datetime, UTC
from typing import List, Literal, Optional
from pydantic import Field, field_validator

from magpie.auth.permissions import BookPermissions, PermissionsUpdate
from magpie.sa.models import Book
from .common import CamelModel

Condition = Literal['excellent', 'good', 'fair', 'poor']
BookTypeLiteral = Literal['reference', 'personal']


def _check_year(value: Optional[int]) -> Optional[int]:
    if value is not None and not 1800 <= value <= datetime.now(UTC).year + 1:
        raise ValueError('publishingYear is out of range')
    return value


class LoanStatus(CamelModel):
    is_loaned: bool
    loaned_to: Optional[str] = None
    loaned_date: Optional[datetime] = None
    expected_return_date: Optional[datetime] = None


class BookCreate(CamelModel):
    isbn: str = Field(min_length=10, max_length=17)
    title: str = Field(min_length=1)
    authors: List[str]
    publisher: str = Field(min_length=1)
    edition: Optional[str] = None
    publishing_year: int
    pages: Optional[int] = Field(default=None, gt=0)
    genre: Optional[str] = None
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    goodreads_link: Optional[str] = None
    physical_location: Optional[str] = None
    condition: Optional[Condition] = None
    notes: Optional[str] = None
    is_favourite: bool = False
    type: BookTypeLiteral
    loan_status: Optional[LoanStatus] = None

    check_publishing_year = field_validator('publishing_year')(_check_year)


class BookUpdate(CamelModel):
    """Partial update. Ownership fields (owner, shared-with, permissions) are not accepted here."""
    title: Optional[str] = Field(default=None, min_length=1)
    authors: Optional[List[str]] = None
    publisher: Optional[str] = Field(default=None, min_length=1)
    edition: Optional[str] = None
    publishing_year: Optional[int] = None
    pages: Optional[int] = Field(default=None, gt=0)
    genre: Optional[str] = None
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    goodreads_link: Optional[str] = None
    physical_location: Optional[str] = None
    condition: Optional[Condition] = None
    notes: Optional[str] = None
    is_favourite: Optional[bool] = None
    type: Optional[BookTypeLiteral] = None
    loan_status: Optional[LoanStatus] = None

    check_publishing_year = field_validator('publishing_year')(_check_year)


class FavouriteUpdate(CamelModel):
    is_favourite: bool


class LoanUpdate(CamelModel):
    loan_status: LoanStatus


class ShareRequest(CamelModel):
    identities: List[str] = Field(min_length=1)
    permissions: Optional[PermissionsUpdate] = None
    message: Optional[str] = None


class BookSchema(CamelModel):
    isbn: str
    title: str
    authors: List[str]
    publisher: str
    edition: Optional[str] = None
    publishing_year: int
    pages: Optional[int] = None
    genre: Optional[str] = None
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    goodreads_link: Optional[str] = None
    physical_location: Optional[str] = None
    condition: Optional[str] = None
    notes: Optional[str] = None
    is_favourite: bool
    type: str
    loan_status: LoanStatus
    owner_id: str
    shared_with: List[str]
    permissions: BookPermissions
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_book(cls, book: Book) -> "BookSchema":
        return cls(
            isbn=book.isbn,
            title=book.title,
            authors=list(book.authors or []),
            publisher=book.publisher,
            edition=book.edition,
            publishing_year=book.publishing_year,
            pages=book.pages,
            genre=book.genre,
            description=book.description,
            cover_image_url=book.cover_image_url,
            goodreads_link=book.goodreads_link,
            physical_location=book.physical_location,
            condition=book.condition,
            notes=book.notes,
            is_favourite=book.is_favourite,
            type=book.type,
            loan_status=LoanStatus(
                is_loaned=book.is_loaned,
                loaned_to=book.loaned_to,
                loaned_date=book.loaned_date,
                expected_return_date=book.expected_return_date,
            ),
            owner_id=book.owner_id,
            shared_with=book.shared_with,
            permissions=BookPermissions.from_book(book),
            created_at=book.created_at,
            updated_at=book.updated_at,
        )
