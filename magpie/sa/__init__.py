# magpie/sa/__init__.py
from .database import Database
from .models import Base, Book, BookShare, User

__all__ = [
    'Database',
    'Base',
    'Book',
    'BookShare',
    'User',
]
