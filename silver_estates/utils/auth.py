"""
Authentication utilities for JWT token management.
Access tokens are bound to a login session; confirmation tokens prove ownership of an email address.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from silver_estates.config import settings
import uuid


ACCESS_TOKEN = "access"
CONFIRMATION_TOKEN = "confirm"


class TokenPayload:
    """JWT token payload structure."""

    def __init__(self, user_id: str, email: str, session_id: Optional[str], exp: datetime):
        self.user_id = user_id
        self.email = email
        self.session_id = session_id
        self.exp = exp

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        """Create TokenPayload from dictionary."""
        return cls(
            user_id=data["sub"],
            email=data["email"],
            session_id=data.get("sid"),  # Only access tokens carry a session
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )


def _encode(claims: Dict[str, Any], expire: datetime) -> str:
    to_encode = {
        **claims,
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    session_id: uuid.UUID,
    expires_at: datetime
) -> str:
    """
    Create JWT access token bound to a login session.

    Args:
        user_id: User's UUID
        email: User's email address
        session_id: Login session the token belongs to
        expires_at: Expiry, matching the login session's expiry

    Returns:
        Encoded JWT token string
    """
    return _encode(
        {
            "sub": str(user_id),
            "email": email,
            "sid": str(session_id),
            "type": ACCESS_TOKEN,
        },
        expires_at,
    )


def create_confirmation_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create the token a new user presents to confirm their email address."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(hours=settings.confirmation_token_expire_hours)
    )
    return _encode(
        {
            "sub": str(user_id),
            "email": email,
            "type": CONFIRMATION_TOKEN,
        },
        expire,
    )


def verify_token(token: str, token_type: str = ACCESS_TOKEN) -> TokenPayload:
    """
    Verify and decode JWT token.

    Args:
        token: JWT token string
        token_type: Expected token type

    Returns:
        Decoded TokenPayload

    Raises:
        JWTError: If token is invalid, of the wrong type or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        raise
    except Exception as e:
        raise JWTError(f"Token validation error: {str(e)}")

    if payload.get("type") != token_type:
        raise JWTError(f"Invalid token type. Expected {token_type}")

    if not payload.get("sub") or not payload.get("email"):
        raise JWTError("Invalid token payload")

    if token_type == ACCESS_TOKEN and not payload.get("sid"):
        raise JWTError("Invalid token payload")

    return TokenPayload.from_dict(payload)
