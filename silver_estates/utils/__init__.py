"""
Utility modules for the remote store service.
"""

from .auth import (
    create_access_token,
    create_confirmation_token,
    verify_token,
    TokenPayload
)

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    ConflictError,
    BadRequestError,
    InvalidCredentialsError,
    EmailNotConfirmedError,
    TokenExpiredError,
    InvalidTokenError,
    UnknownTableError,
    ReadOnlyTableError,
    ListingOwnershipError
)

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    # Auth utilities
    "create_access_token",
    "create_confirmation_token",
    "verify_token",
    "TokenPayload",

    # Exceptions
    "APIException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "ConflictError",
    "BadRequestError",
    "InvalidCredentialsError",
    "EmailNotConfirmedError",
    "TokenExpiredError",
    "InvalidTokenError",
    "UnknownTableError",
    "ReadOnlyTableError",
    "ListingOwnershipError",
]
