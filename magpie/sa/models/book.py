# magpie/sa/models/book.py
from datetime import datetime
from typing import List
from sqlalchemy import String, Integer, Boolean, ForeignKey, Text, JSON, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin, UTCDateTime
from enum import Enum


class BookType(str, Enum):
    REFERENCE = "reference"
    PERSONAL = "personal"


class BookShare(Base):
    """One identity in a book's shared-with set."""
    __tablename__ = 'book_share'

    isbn: Mapped[str] = mapped_column(ForeignKey('book.isbn', ondelete='CASCADE'), primary_key=True)
    # Not a foreign key: a book may be shared with someone who has not logged in yet
    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)

    book = relationship('Book', back_populates='shares')

    __table_args__ = (
        Index('idx_book_share_user_id', 'user_id'),
    )


class Book(Base, TimestampMixin):
    __tablename__ = 'book'

    isbn: Mapped[str] = mapped_column(String(13), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    authors: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    publisher: Mapped[str] = mapped_column(String(255), nullable=False)
    edition: Mapped[str | None] = mapped_column(String(255), nullable=True)
    publishing_year: Mapped[int] = mapped_column(Integer, nullable=False)
    pages: Mapped[int | None] = mapped_column(Integer, nullable=True)
    genre: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    goodreads_link: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    physical_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    condition: Mapped[str | None] = mapped_column(String(20), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_favourite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default=BookType.PERSONAL.value)

    # Loan status
    is_loaned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    loaned_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    loaned_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    expected_return_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Ownership
    owner_id: Mapped[str] = mapped_column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False)

    # Permissions granted to every identity in the shared-with set
    can_view: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    can_edit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    can_loan: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    can_share: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    can_remove: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    owner = relationship('User', back_populates='owned_books')
    shares = relationship('BookShare', back_populates='book', cascade='all, delete-orphan', lazy='selectin')

    __table_args__ = (
        Index('idx_book_title', 'title'),
        Index('idx_book_owner_id', 'owner_id'),
        Index('idx_book_genre', 'genre'),
    )

    @property
    def shared_with(self) -> List[str]:
        return sorted(share.user_id for share in self.shares)
