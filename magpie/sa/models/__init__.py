# magpie/sa/models/__init__.py
from .base import Base, TimestampMixin, UTCDateTime, utcnow
from .user import User, DEFAULT_USER_PREFERENCES, default_preferences
from .book import Book, BookShare, BookType

__all__ = [
    'Base',
    'TimestampMixin',
    'UTCDateTime',
    'utcnow',
    'User',
    'DEFAULT_USER_PREFERENCES',
    'default_preferences',
    'Book',
    'BookShare',
    'BookType',
]
