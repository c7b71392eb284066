# magpie/offline/models.py
from datetime import datetime
from typing import Any, Dict
from sqlalchemy import String, Integer, Boolean, JSON, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from magpie.sa.models.base import UTCDateTime


class LocalBase(DeclarativeBase):
    """Base class for the device-local tables"""
    pass


class LocalBook(LocalBase):
    """Cached copy of one visible record, in its wire shape."""
    __tablename__ = 'local_book'

    isbn: Mapped[str] = mapped_column(String(13), primary_key=True)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    needs_sync: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class LocalChange(LocalBase):
    """One queued mutation. Only ``synced`` ever changes after insert."""
    __tablename__ = 'local_change'

    # Insertion order is creation order
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    isbn: Mapped[str] = mapped_column(String(13), nullable=False)
    action: Mapped[str] = mapped_column(String(10), nullable=False)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    synced: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index('idx_local_change_isbn', 'isbn'),
        Index('idx_local_change_synced', 'synced'),
    )


class LocalMetadata(LocalBase):
    __tablename__ = 'local_metadata'

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
