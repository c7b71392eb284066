# magpie/services/auth_service.py

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from magpie.auth.tokens import TokenPayload, TokenValidator
from magpie.errors import AuthenticationRequired, NotFoundError
from magpie.sa.models import User
from magpie.sa.repositories.user import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    user: User
    token: str
    created: bool


class AuthService:
    """Login and profile use cases.

    ``login`` is the only operation that creates an identity.
    """

    def __init__(self, token_validator: TokenValidator, session: Session):
        self.token_validator = token_validator
        self.users = UserRepository(session)

    async def login(self, id_token: str) -> LoginResult:
        result = await self.token_validator.validate_token(id_token)
        if not result.is_valid or result.payload is None:
            message = result.error.message if result.error else "Token validation failed"
            logger.info("Login rejected: %s", message)
            raise AuthenticationRequired(message)

        payload = result.payload
        user = self.users.get_by_id(payload.sub)
        if user is not None:
            self.users.update_last_login(user.id)
            logger.info("User logged in: %s (%s)", user.email, user.id)
            return LoginResult(user=user, token=id_token, created=False)

        user = self._create_user_from_token(payload)
        logger.info("New user created and logged in: %s (%s)", user.email, user.id)
        return LoginResult(user=user, token=id_token, created=True)

    def _create_user_from_token(self, payload: TokenPayload) -> User:
        return self.users.create_user(
            user_id=payload.sub,
            email=payload.email,
            name=payload.name,
            profile_picture_url=payload.picture,
        )

    def get_profile(self, user_id: str) -> User:
        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        profile_picture_url: Optional[str] = None,
        preferences: Optional[Dict[str, Any]] = None,
    ) -> User:
        user = self.users.update_user(user_id, name=name, profile_picture_url=profile_picture_url, preferences=preferences)
        if user is None:
            raise NotFoundError("User not found")
        logger.info("User profile updated: %s", user_id)
        return user

    def delete_account(self, user_id: str) -> None:
        if not self.users.delete_user(user_id):
            raise NotFoundError("User not found")
        logger.info("User account deleted: %s", user_id)
