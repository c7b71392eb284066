from typing import Any, Dict, Optional
from datetime import datetime, UTC
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from magpie.errors import ConflictError
from magpie.sa.models import User, BookShare, default_preferences


class UserRepository:
    """Repository for managing User (identity) entities."""

    def __init__(self, session: Session):
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by their ID (the OIDC subject claim).

        Args:
            user_id: The ID of the user to retrieve

        Returns:
            The User object if found, None otherwise
        """
        return self.session.query(User).filter(User.id == user_id).one_or_none()

    def exists(self, user_id: str) -> bool:
        return self.session.query(User.id).filter(User.id == user_id).first() is not None

    def create_user(
        self,
        user_id: str,
        email: str,
        name: str,
        profile_picture_url: Optional[str] = None,
        preferences: Optional[Dict[str, Any]] = None,
    ) -> User:
        """Create a new user.

        Raises:
            ConflictError: If a user with the given ID already exists
        """
        if self.exists(user_id):
            raise ConflictError(f"User '{user_id}' already exists")

        merged = default_preferences()
        merged.update(preferences or {})
        now = datetime.now(UTC)
        user = User(
            id=user_id,
            email=email,
            name=name,
            profile_picture_url=profile_picture_url,
            preferences=merged,
            last_login_at=now,
        )
        self.session.add(user)
        try:
            self.session.commit()
            return user
        except IntegrityError:
            self.session.rollback()
            raise ConflictError(f"User '{user_id}' already exists")

    def update_user(
        self,
        user_id: str,
        name: Optional[str] = None,
        profile_picture_url: Optional[str] = None,
        preferences: Optional[Dict[str, Any]] = None,
    ) -> Optional[User]:
        """Update a user's profile. Preferences are merged key by key.

        Returns:
            The updated User object if found, None otherwise
        """
        user = self.get_by_id(user_id)
        if not user:
            return None

        if name is not None:
            user.name = name
        if profile_picture_url is not None:
            user.profile_picture_url = profile_picture_url
        if preferences:
            merged = dict(user.preferences or default_preferences())
            for key, value in preferences.items():
                if isinstance(value, dict) and isinstance(merged.get(key), dict):
                    merged[key] = {**merged[key], **value}
                else:
                    merged[key] = value
            user.preferences = merged
        self.session.commit()
        return user

    def update_last_login(self, user_id: str) -> bool:
        user = self.get_by_id(user_id)
        if not user:
            return False
        user.last_login_at = datetime.now(UTC)
        self.session.commit()
        return True

    def delete_user(self, user_id: str) -> bool:
        """Delete a user, the books they own, and their access to books shared with them.

        Returns:
            True if the user was deleted, False if not found
        """
        user = self.get_by_id(user_id)
        if not user:
            return False

        self.session.query(BookShare).filter(BookShare.user_id == user_id).delete()
        self.session.delete(user)
        self.session.commit()
        return True
