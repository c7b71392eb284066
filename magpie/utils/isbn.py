# magpie/utils/isbn.py
import re

from magpie.errors import ValidationError

_SEPARATORS = re.compile(r"[-\s]")
_ISBN_PATTERN = re.compile(r"^\d{10}$|^\d{13}$")


def normalize_isbn(isbn: str) -> str:
    """Strip hyphens and whitespace from an ISBN."""
    return _SEPARATORS.sub("", isbn or "")


def is_valid_isbn(isbn: str) -> bool:
    """Check that an ISBN is 10 or 13 digits once separators are removed."""
    return bool(_ISBN_PATTERN.match(normalize_isbn(isbn)))


def require_isbn(isbn: str) -> str:
    """Return the normalized ISBN or raise ValidationError."""
    if not is_valid_isbn(isbn):
        raise ValidationError("Invalid ISBN format")
    return normalize_isbn(isbn)
