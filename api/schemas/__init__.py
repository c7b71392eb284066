from .common import CamelModel, PaginatedResponse, ErrorResponse
from .book import (
    LoanStatus, BookCreate, BookUpdate, FavouriteUpdate, LoanUpdate, ShareRequest, BookSchema
)
from .user import UserSchema, LoginRequest, LoginResponse, ProfileUpdate, ContextUser, ValidateResponse

__all__ = [
    'CamelModel', 'PaginatedResponse', 'ErrorResponse',
    'LoanStatus', 'BookCreate', 'BookUpdate', 'FavouriteUpdate', 'LoanUpdate', 'ShareRequest', 'BookSchema',
    'UserSchema', 'LoginRequest', 'LoginResponse', 'ProfileUpdate', 'ContextUser', 'ValidateResponse',
]
