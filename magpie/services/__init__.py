from .book_service import BookService, PaginatedResult
from .auth_service import AuthService, LoginResult

__all__ = ['BookService', 'PaginatedResult', 'AuthService', 'LoginResult']
