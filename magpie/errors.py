# magpie/errors.py
from typing import Optional


class CatalogError(Exception):
    """Base class for errors raised by the catalog core.

    Each subclass carries the HTTP status the API answers with, so the same
    classes can be raised on the server and rebuilt on the client from a
    response status.
    """

    status_code: int = 500
    error: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.error
        super().__init__(self.message)


class ValidationError(CatalogError):
    status_code = 400
    error = "Validation error"


class AuthenticationRequired(CatalogError):
    status_code = 401
    error = "Authentication required"


class AuthorizationError(CatalogError):
    status_code = 403
    error = "Forbidden"


class NotFoundError(CatalogError):
    status_code = 404
    error = "Book not found"


class ConflictError(CatalogError):
    status_code = 409
    error = "Conflict"


class RemoteError(CatalogError):
    """A non-2xx answer from the remote catalog that maps to no known class."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"Remote catalog answered with status {status_code}")


class NetworkError(Exception):
    """The remote catalog could not be reached (connection refused, timeout, ...)."""


_STATUS_TO_ERROR = {
    400: ValidationError,
    401: AuthenticationRequired,
    403: AuthorizationError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}


def error_from_status(status_code: int, message: Optional[str] = None) -> CatalogError:
    """Rebuild the catalog error matching an HTTP status."""
    error_class = _STATUS_TO_ERROR.get(status_code)
    if error_class is None:
        return RemoteError(status_code, message)
    return error_class(message)
