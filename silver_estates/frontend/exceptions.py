"""
Error taxonomy of the application core.
Remote store failures are mapped onto these types so pages can react without knowing the transport.
"""

from typing import Optional


class AppError(Exception):
    """Base class for every error the application core surfaces."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return self.message


class NetworkError(AppError):
    """The remote store could not be reached or did not answer in time."""


class NotFoundError(AppError):
    """A record id is absent from its table."""


class ValidationError(AppError):
    """Client-side required-field or type failure; never sent to the remote store."""

    def __init__(self, message: str, field: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message, code=code)
        self.field = field


class MissingFieldError(ValidationError):
    def __init__(self, field: str):
        super().__init__(f"{field.replace('_', ' ').capitalize()} is required", field=field, code="MISSING_FIELD")


class InvalidNumberError(ValidationError):
    def __init__(self, field: str, raw_value: str):
        super().__init__(
            f"{field.replace('_', ' ').capitalize()} must be a valid number, got '{raw_value}'",
            field=field,
            code="INVALID_NUMBER"
        )
        self.raw_value = raw_value


class AuthError(AppError):
    """Bad credentials, unauthenticated access or a rejected session."""


class AuthRequiredError(AuthError):
    def __init__(self, message: str = "Please log in to continue"):
        super().__init__(message, code="AUTH_REQUIRED")


class SessionExpiredError(AuthError):
    def __init__(self, message: str = "Your session has expired. Please log in again."):
        super().__init__(message, code="SESSION_EXPIRED")


class PermissionDeniedError(AppError):
    """Attempt to modify a record owned by someone else."""

    def __init__(self, message: str = "You don't own this property", code: Optional[str] = "FORBIDDEN"):
        super().__init__(message, code=code)
