# magpie/auth/tokens.py
import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Protocol

import requests
from google.auth import exceptions as google_exceptions
from google.auth.transport.requests import Request as GoogleRequest
from google.oauth2 import id_token

logger = logging.getLogger(__name__)


class TokenErrorType(str, Enum):
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"


@dataclass(frozen=True)
class TokenError:
    type: TokenErrorType
    message: str
    details: Optional[str] = None


@dataclass(frozen=True)
class TokenPayload:
    sub: str
    email: str
    name: str
    iat: int
    exp: int
    aud: str
    iss: str
    picture: Optional[str] = None


@dataclass(frozen=True)
class TokenValidationResult:
    is_valid: bool
    payload: Optional[TokenPayload] = None
    error: Optional[TokenError] = None

    @classmethod
    def invalid(cls, error_type: TokenErrorType, message: str, details: Optional[str] = None):
        return cls(is_valid=False, error=TokenError(error_type, message, details))


class TokenValidator(Protocol):
    async def validate_token(self, token: str) -> TokenValidationResult:
        ...


def check_claims(
    claims: Optional[Dict[str, Any]],
    issuers: Iterable[str],
    audiences: Iterable[str],
    now: Optional[int] = None,
) -> TokenValidationResult:
    """Validate the decoded claims of an identity token.

    Signature checking happens before this; here the required claims,
    issuer, audience and expiry are checked.
    """
    now = int(time.time()) if now is None else now

    if not claims:
        return TokenValidationResult.invalid(TokenErrorType.INVALID_TOKEN, "Token payload is empty")

    if not claims.get("sub") or not claims.get("email"):
        return TokenValidationResult.invalid(
            TokenErrorType.INVALID_TOKEN, "Required claims (sub, email) missing from token"
        )

    issuer = claims.get("iss", "")
    if issuer not in set(issuers):
        return TokenValidationResult.invalid(TokenErrorType.INVALID_TOKEN, f"Invalid issuer: {issuer}")

    audience = claims.get("aud", "")
    if audience not in set(audiences):
        return TokenValidationResult.invalid(TokenErrorType.INVALID_TOKEN, f"Invalid audience: {audience}")

    exp = claims.get("exp")
    if exp is not None and int(exp) < now:
        return TokenValidationResult.invalid(TokenErrorType.TOKEN_EXPIRED, "Token has expired")

    payload = TokenPayload(
        sub=claims["sub"],
        email=claims["email"],
        name=claims.get("name") or claims["email"],
        picture=claims.get("picture"),
        iat=int(claims.get("iat") or now),
        exp=int(exp or now + 3600),
        aud=audience,
        iss=issuer,
    )
    return TokenValidationResult(is_valid=True, payload=payload)


class GoogleTokenValidator:
    """Validates Google OIDC ID tokens against Google's published keys."""

    def __init__(self, audiences: Iterable[str], issuers: Iterable[str], session: Optional[requests.Session] = None):
        self.audiences = list(audiences)
        self.issuers = list(issuers)
        self._request = GoogleRequest(session=session or requests.Session())

    def _decode(self, token: str) -> Dict[str, Any]:
        # Verifies signature, iat and exp; audience is checked in check_claims
        return id_token.verify_token(token, self._request, audience=None)

    async def validate_token(self, token: str) -> TokenValidationResult:
        token = token.removeprefix("Bearer ").strip()
        try:
            claims = await asyncio.to_thread(self._decode, token)
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            message = str(e)
            logger.info("Token validation failed: %s", message)
            if "expired" in message.lower() or "too late" in message.lower():
                return TokenValidationResult.invalid(TokenErrorType.TOKEN_EXPIRED, "Token has expired", message)
            return TokenValidationResult.invalid(TokenErrorType.INVALID_TOKEN, "Invalid token", message)

        result = check_claims(claims, self.issuers, self.audiences)
        if result.is_valid:
            logger.info("Token validated successfully for user: %s", result.payload.email)
        else:
            logger.info("Token rejected: %s", result.error.message)
        return result
