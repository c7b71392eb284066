# magpie/auth/__init__.py
from .permissions import (
    Operation, BookPermissions, FULL_PERMISSIONS, DEFAULT_SHARED_PERMISSIONS, NO_PERMISSIONS
)
from .context import UserContext, AuthenticatedUser, AnonymousUser, ANONYMOUS, UserContextResolver
from .guard import OwnershipGuard
from .tokens import TokenPayload, TokenValidationResult, TokenValidator, GoogleTokenValidator

__all__ = [
    'Operation',
    'BookPermissions',
    'FULL_PERMISSIONS',
    'DEFAULT_SHARED_PERMISSIONS',
    'NO_PERMISSIONS',
    'UserContext',
    'AuthenticatedUser',
    'AnonymousUser',
    'ANONYMOUS',
    'UserContextResolver',
    'OwnershipGuard',
    'TokenPayload',
    'TokenValidationResult',
    'TokenValidator',
    'GoogleTokenValidator',
]
