"""
Authentication service for sign-up, sign-in, sign-out and session resolution.
Every access token is bound to a login session row so signing out invalidates it server-side.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from silver_estates.config import settings
from silver_estates.database import utcnow
from silver_estates.models.user import User, Profile, LoginSession
from silver_estates.repositories.user import UserRepository, ProfileRepository, LoginSessionRepository
from silver_estates.schemas.auth import SignUpRequest, UserResponse, SessionResponse
from silver_estates.utils.auth import (
    ACCESS_TOKEN,
    CONFIRMATION_TOKEN,
    create_access_token,
    create_confirmation_token,
    verify_token
)
from silver_estates.utils.exceptions import (
    ConflictError,
    EmailNotConfirmedError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    ValidationError
)
from jose import JWTError
import uuid
import logging

logger = logging.getLogger(__name__)


@dataclass
class IssuedSession:
    """A signed-in user together with the token that proves it."""

    user: User
    profile: Optional[Profile]
    access_token: str
    login_session: LoginSession

    def to_response(self) -> SessionResponse:
        return SessionResponse(
            access_token=self.access_token,
            expires_at=self.login_session.expires_at,
            user=account_response(self.user, self.profile),
        )


def account_response(user: User, profile: Optional[Profile]) -> UserResponse:
    """Merge the auth identity with its profile row."""
    return UserResponse(
        id=str(user.id),
        email=user.email,
        full_name=profile.full_name if profile else None,
        phone_number=profile.phone_number if profile else None,
        city=profile.city if profile else None,
        user_type=profile.user_type if profile else None,
        email_confirmed=user.email_confirmed,
        created_at=user.created_at,
    )


class AuthService:
    """
    Authentication service managing identities, profiles and login sessions.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.profile_repo = ProfileRepository(db_session)
        self.session_repo = LoginSessionRepository(db_session)

    async def sign_up(self, sign_up_data: SignUpRequest) -> Tuple[User, Profile, Optional[IssuedSession]]:
        """
        Create an auth identity and its profile.

        Returns:
            Tuple of (user, profile, session). The session is None while the
            email address awaits confirmation.

        Raises:
            ConflictError: If the email is already registered
            ValidationError: If the email or password is rejected
        """
        if await self.user_repo.get_by_email(sign_up_data.email):
            raise ConflictError("User already registered")

        try:
            user = await self.user_repo.create_user({
                "email": sign_up_data.email,
                "password": sign_up_data.password,
                "email_confirmed": not settings.auth_require_email_confirmation,
            })
        except ValueError as e:
            raise ValidationError(str(e))

        profile = await self.profile_repo.create({
            "id": user.id,
            "full_name": sign_up_data.full_name,
            "phone_number": sign_up_data.phone_number,
            "city": sign_up_data.city,
            "user_type": sign_up_data.user_type,
        })

        if settings.auth_require_email_confirmation:
            token = create_confirmation_token(user.id, user.email)
            # No mail transport is configured; the link is logged for the operator
            logger.info(f"Confirmation requested for {user.email}: token={token}")
            return user, profile, None

        issued = await self._open_session(user, profile)
        logger.info(f"User signed up and signed in: {user.email}")
        return user, profile, issued

    async def sign_in(self, email: str, password: str) -> IssuedSession:
        """
        Authenticate with email and password and open a login session.

        Raises:
            ValidationError: If email or password is blank
            InvalidCredentialsError: If credentials are invalid
            EmailNotConfirmedError: If the account awaits confirmation
        """
        if not email or not email.strip():
            raise ValidationError("Email is required")

        if not password:
            raise ValidationError("Password is required")

        user = await self.user_repo.authenticate_user(email, password)
        if not user:
            logger.warning(f"Failed sign-in attempt for email: {email}")
            raise InvalidCredentialsError()

        if not user.email_confirmed:
            raise EmailNotConfirmedError()

        profile = await self.profile_repo.get_by_id(user.id)
        issued = await self._open_session(user, profile)

        logger.info(f"User signed in: {user.email}")
        return issued

    async def sign_out(self, token: str) -> None:
        """
        Revoke the login session behind the token.
        Signing out an already expired or revoked session is not an error.
        """
        try:
            payload = verify_token(token, token_type=ACCESS_TOKEN)
        except JWTError:
            logger.debug("Sign-out with an unusable token ignored")
            return

        revoked = await self.session_repo.revoke(uuid.UUID(payload.session_id))
        if revoked:
            logger.info(f"User signed out: {payload.email}")

    async def resolve_session(self, token: str) -> Tuple[User, Optional[Profile], LoginSession]:
        """
        Resolve an access token to its user.

        Raises:
            TokenExpiredError: If the token or its login session has expired
            InvalidTokenError: If the token is malformed or its session was revoked
        """
        try:
            payload = verify_token(token, token_type=ACCESS_TOKEN)
        except JWTError as e:
            if "expired" in str(e).lower():
                raise TokenExpiredError()
            raise InvalidTokenError(str(e))

        login_session = await self.session_repo.get_by_id(uuid.UUID(payload.session_id))
        if login_session is None or login_session.revoked_at is not None:
            raise InvalidTokenError("Session has been revoked")

        if not login_session.is_active:
            raise TokenExpiredError()

        user = await self.user_repo.get_by_id(uuid.UUID(payload.user_id))
        if user is None:
            raise InvalidTokenError("User no longer exists")

        profile = await self.profile_repo.get_by_id(user.id)
        return user, profile, login_session

    async def confirm_email(self, token: str) -> User:
        """
        Mark the email address behind a confirmation token as confirmed.

        Raises:
            InvalidTokenError: If the token is invalid or expired
        """
        try:
            payload = verify_token(token, token_type=CONFIRMATION_TOKEN)
        except JWTError as e:
            raise InvalidTokenError(str(e))

        user = await self.user_repo.get_by_id(uuid.UUID(payload.user_id))
        if user is None or user.email != payload.email:
            raise InvalidTokenError("Confirmation token does not match any account")

        if not user.email_confirmed:
            user = await self.user_repo.confirm_email(user)
            logger.info(f"Email confirmed: {user.email}")

        return user

    async def _open_session(self, user: User, profile: Optional[Profile]) -> IssuedSession:
        expires_at = utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
        login_session = await self.session_repo.open_session(user.id, expires_at)
        access_token = create_access_token(user.id, user.email, login_session.id, expires_at)
        return IssuedSession(
            user=user,
            profile=profile,
            access_token=access_token,
            login_session=login_session,
        )
