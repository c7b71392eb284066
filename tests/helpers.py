# tests/helpers.py
import time

from magpie.auth.tokens import TokenPayload, TokenValidationResult, TokenErrorType

TEST_AUDIENCE = "magpie-test-client"
TEST_ISSUER = "https://accounts.google.com"


def make_payload(sub: str, email: str = None, name: str = None) -> TokenPayload:
    now = int(time.time())
    return TokenPayload(
        sub=sub,
        email=email or f"{sub}@example.com",
        name=name or sub.title(),
        iat=now,
        exp=now + 3600,
        aud=TEST_AUDIENCE,
        iss=TEST_ISSUER,
    )


class FakeTokenValidator:
    """Maps known test tokens to payloads; everything else is invalid."""

    def __init__(self, tokens=None):
        self.tokens = dict(tokens or {})
        self.calls = []

    async def validate_token(self, token: str) -> TokenValidationResult:
        self.calls.append(token)
        payload = self.tokens.get(token)
        if payload is None:
            return TokenValidationResult.invalid(TokenErrorType.INVALID_TOKEN, "Invalid token")
        return TokenValidationResult(is_valid=True, payload=payload)


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def book_payload(isbn: str = "9780132350884", **overrides) -> dict:
    """A create body in wire (camelCase) shape."""
    payload = {
        "isbn": isbn,
        "title": "Clean Code",
        "authors": ["Robert C. Martin"],
        "publisher": "Prentice Hall",
        "publishingYear": 2008,
        "type": "personal",
        "genre": "Software",
        "isFavourite": False,
        "loanStatus": {"isLoaned": False},
    }
    payload.update(overrides)
    return payload


def book_data(isbn: str = "9780132350884", **overrides) -> dict:
    """A create body as the service receives it (snake_case)."""
    data = {
        "isbn": isbn,
        "title": "Clean Code",
        "authors": ["Robert C. Martin"],
        "publisher": "Prentice Hall",
        "publishing_year": 2008,
        "type": "personal",
        "genre": "Software",
        "is_favourite": False,
    }
    data.update(overrides)
    return data


