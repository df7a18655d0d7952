"""
Custom exception classes for the remote store service.
Provides structured error handling with appropriate HTTP status codes.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class ValidationError(APIException):
    """Validation error exception."""

    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, str]]] = None
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR"
        )
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class UnauthorizedError(APIException):
    """Authentication required exception."""

    def __init__(self, detail: str = "Authentication required", error_code: str = "UNAUTHORIZED"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(APIException):
    """Access forbidden exception."""

    def __init__(self, detail: str = "Access forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN"
        )


class ConflictError(APIException):
    """Resource conflict exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="CONFLICT"
        )


class BadRequestError(APIException):
    """Bad request exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="BAD_REQUEST"
        )


# Authentication specific exceptions
class InvalidCredentialsError(UnauthorizedError):
    """Invalid login credentials exception."""

    def __init__(self, detail: str = "Invalid login credentials"):
        super().__init__(detail, error_code="INVALID_CREDENTIALS")


class EmailNotConfirmedError(UnauthorizedError):
    """Sign-in attempted before the email address was confirmed."""

    def __init__(self, detail: str = "Email not confirmed"):
        super().__init__(detail, error_code="EMAIL_NOT_CONFIRMED")


class TokenExpiredError(UnauthorizedError):
    """JWT token or login session expired exception."""

    def __init__(self, detail: str = "Session has expired"):
        super().__init__(detail, error_code="SESSION_EXPIRED")


class InvalidTokenError(UnauthorizedError):
    """Invalid or revoked JWT token exception."""

    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail, error_code="INVALID_TOKEN")


# Table specific exceptions
class UnknownTableError(NotFoundError):
    def __init__(self, table: str):
        super().__init__("Table", table)


class ReadOnlyTableError(ForbiddenError):
    def __init__(self, table: str):
        super().__init__(f"Table {table} is read-only")


class ListingOwnershipError(ForbiddenError):
    """Attempt to modify a listing owned by someone else."""

    def __init__(self, detail: str = "You don't own this property"):
        super().__init__(detail)


class PrivateRowError(ForbiddenError):
    """Attempt to read a row that belongs to another user."""

    def __init__(self, table: str):
        super().__init__(f"Rows of {table} are visible only to their owner")
