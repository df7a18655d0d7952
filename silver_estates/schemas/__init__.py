"""
Pydantic schemas for request/response validation.
"""

# Authentication schemas
from .auth import (
    SignInRequest,
    SignUpRequest,
    ConfirmEmailRequest,
    UserResponse,
    SessionResponse,
    SignUpResponse
)

# Listing schemas
from .property import (
    SalePropertyCreate,
    RentalPropertyCreate
)

__all__ = [
    "SignInRequest",
    "SignUpRequest",
    "ConfirmEmailRequest",
    "UserResponse",
    "SessionResponse",
    "SignUpResponse",
    "SalePropertyCreate",
    "RentalPropertyCreate",
]
