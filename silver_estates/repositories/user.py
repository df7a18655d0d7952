"""
User, profile and login session repositories.
Provides secure user operations with password handling and session revocation.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from silver_estates.repositories.base import BaseRepository
from silver_estates.models.user import User, Profile, LoginSession
from silver_estates.database import utcnow
from datetime import datetime
from typing import Optional, Dict, Any
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for auth identities.
    Emails are normalized before every lookup.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Must include email and password; may include email_confirmed

        Raises:
            ValueError: If the email is invalid, already taken, or the password too short
        """
        email = User.validate_email_format(user_data["email"])

        if await self.get_by_email(email):
            raise ValueError(f"User with email {email} already exists")

        create_data = {
            "email": email,
            "hashed_password": User.hash_password(user_data["password"]),
            "email_confirmed": user_data.get("email_confirmed", False),
        }

        created_user = await self.create(create_data)
        logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
        return created_user

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.get_by_field("email", email.lower().strip())

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Returns:
            The user when the password matches, None otherwise
        """
        user = await self.get_by_email(email)
        if not user or not user.verify_password(password):
            return None
        return user

    async def confirm_email(self, user: User) -> User:
        try:
            user.email_confirmed = True
            await self.db.commit()
            await self.db.refresh(user)
            return user
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to confirm email for user {user.id}: {e}")
            raise


class ProfileRepository(BaseRepository[Profile]):
    def __init__(self, db: AsyncSession):
        super().__init__(Profile, db)


class LoginSessionRepository(BaseRepository[LoginSession]):
    """Repository for sign-in sessions backing issued access tokens."""

    def __init__(self, db: AsyncSession):
        super().__init__(LoginSession, db)

    async def open_session(self, user_id: uuid.UUID, expires_at: datetime) -> LoginSession:
        return await self.create({"user_id": user_id, "expires_at": expires_at})

    async def revoke(self, session_id: uuid.UUID) -> bool:
        """
        Returns:
            True if an active session was revoked
        """
        login_session = await self.get_by_id(session_id)
        if login_session is None or login_session.revoked_at is not None:
            return False

        try:
            login_session.revoked_at = utcnow()
            await self.db.commit()
            logger.debug(f"Revoked login session {session_id}")
            return True
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to revoke login session {session_id}: {e}")
            raise
