# magpie/auth/context.py
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Set, Union

from magpie.auth.tokens import TokenValidator
from magpie.sa.database import Database
from magpie.sa.models import User
from magpie.sa.repositories.user import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: str
    name: str

    @property
    def is_authenticated(self) -> bool:
        return True


@dataclass(frozen=True)
class AnonymousUser:
    @property
    def is_authenticated(self) -> bool:
        return False


UserContext = Union[AuthenticatedUser, AnonymousUser]

ANONYMOUS = AnonymousUser()


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class UserContextResolver:
    """Turns a bearer credential into an authenticated or anonymous context.

    Never raises: a missing, malformed, invalid or unknown credential yields
    the anonymous context and authorization downstream rejects whatever
    needs an identity. Identities are never created here; only the login
    operation provisions them.
    """

    def __init__(self, token_validator: TokenValidator, database: Database):
        self.token_validator = token_validator
        self.database = database
        self._background: Set[asyncio.Task] = set()

    async def resolve(self, authorization: Optional[str]) -> UserContext:
        token = extract_bearer_token(authorization)
        if token is None:
            return ANONYMOUS

        try:
            result = await self.token_validator.validate_token(token)
            if not result.is_valid or result.payload is None:
                logger.info("Token validation failed, returning anonymous context")
                return ANONYMOUS

            user = await asyncio.to_thread(self._find_user, result.payload.sub)
            if user is None:
                logger.info("User not found in database: %s, returning anonymous context", result.payload.sub)
                return ANONYMOUS
        except Exception:
            logger.exception("Error resolving user context")
            return ANONYMOUS

        self._schedule_last_login(user.id)
        logger.info("User context resolved for: %s (%s)", user.email, user.id)
        return AuthenticatedUser(id=user.id, email=user.email, name=user.name)

    def _find_user(self, user_id: str) -> Optional[User]:
        with self.database.get_db() as session:
            return UserRepository(session).get_by_id(user_id)

    def _update_last_login(self, user_id: str) -> None:
        with self.database.get_db() as session:
            UserRepository(session).update_last_login(user_id)

    def _schedule_last_login(self, user_id: str) -> None:
        task = asyncio.get_running_loop().create_task(self._touch_last_login(user_id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _touch_last_login(self, user_id: str) -> None:
        try:
            await asyncio.to_thread(self._update_last_login, user_id)
        except Exception as e:
            logger.warning("Failed to update last login for user %s: %s", user_id, e)

    async def wait_for_background(self) -> None:
        """Wait for scheduled last-login updates to finish."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
