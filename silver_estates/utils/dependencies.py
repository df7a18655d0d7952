"""
FastAPI dependency injection utilities for authentication and database sessions.
"""

from dataclasses import dataclass
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from silver_estates.database import get_db
from silver_estates.models.user import User, Profile, LoginSession
from silver_estates.services.auth import AuthService
from silver_estates.services.listing import ListingService
from silver_estates.utils.exceptions import UnauthorizedError


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


@dataclass
class CurrentSession:
    """The signed-in user behind the request's bearer token."""

    user: User
    profile: Optional[Profile]
    login_session: LoginSession
    access_token: str


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


async def get_listing_service(db: AsyncSession = Depends(get_db)) -> ListingService:
    return ListingService(db)


async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> CurrentSession:
    """
    Resolve the bearer token to its login session.

    Raises:
        UnauthorizedError: If no token was provided
        TokenExpiredError: If the session has expired
        InvalidTokenError: If the token is invalid or was revoked
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    user, profile, login_session = await auth_service.resolve_session(credentials.credentials)
    return CurrentSession(
        user=user,
        profile=profile,
        login_session=login_session,
        access_token=credentials.credentials,
    )


async def get_current_user(session: CurrentSession = Depends(get_current_session)) -> User:
    return session.user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Resolve the bearer token when one is sent.
    Anonymous requests get None; a bad token still fails.
    """
    if not credentials:
        return None

    user, _, _ = await auth_service.resolve_session(credentials.credentials)
    return user
