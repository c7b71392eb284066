# magpie/sa/models/user.py
from datetime import datetime
from typing import Any, Dict
from sqlalchemy import String, JSON
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin, UTCDateTime

DEFAULT_USER_PREFERENCES: Dict[str, Any] = {
    "sortingStyle": "alphabetical",
    "sharingVisibility": "private",
    "notifications": {
        "newBooks": True,
        "loanReminders": True,
        "sharedCollections": False,
    },
    "theme": "auto",
    "booksPerPage": 20,
    "defaultView": "grid",
}


def default_preferences() -> Dict[str, Any]:
    return {
        **DEFAULT_USER_PREFERENCES,
        "notifications": dict(DEFAULT_USER_PREFERENCES["notifications"]),
    }


class User(Base, TimestampMixin):
    """An identity, keyed by the OIDC subject claim."""
    __tablename__ = 'user'

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    profile_picture_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    preferences: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=default_preferences)
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Relationships
    owned_books = relationship('Book', back_populates='owner', cascade='all, delete-orphan')
