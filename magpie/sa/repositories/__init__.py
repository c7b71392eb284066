from .book import BookRepository, BookSearchCriteria
from .user import UserRepository

__all__ = ['BookRepository', 'BookSearchCriteria', 'UserRepository']
