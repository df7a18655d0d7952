"""
Pydantic schemas for authentication requests and responses.
Handles sign-up, sign-in, session and email confirmation payloads.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime


class SignInRequest(BaseModel):
    """Sign-in request schema."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["owner@example.com"]
    )
    password: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="User's password"
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class SignUpRequest(BaseModel):
    """Sign-up request schema; profile fields are stored on the profiles table."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(
        ...,
        min_length=6,
        max_length=128,
        description="User's password (minimum 6 characters)"
    )
    full_name: str = Field(..., min_length=1, max_length=255, description="User's full name")
    phone_number: Optional[str] = Field(None, max_length=32, description="Contact phone number")
    city: Optional[str] = Field(None, max_length=120)
    user_type: Optional[str] = Field(None, max_length=32)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        """Validate and clean full name."""
        if not v or not v.strip():
            raise ValueError("Full name cannot be empty")
        return v.strip()

    @field_validator("phone_number", "city", "user_type")
    @classmethod
    def blank_to_none(cls, v):
        if v is None or not v.strip():
            return None
        return v.strip()


class ConfirmEmailRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Email confirmation token")


class UserResponse(BaseModel):
    """Account as seen by the application: auth identity merged with its profile."""

    id: str
    email: str
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    city: Optional[str] = None
    user_type: Optional[str] = None
    email_confirmed: bool = False
    created_at: datetime


class SessionResponse(BaseModel):
    """An authenticated session."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_at: datetime = Field(..., description="When the session stops being valid")
    user: UserResponse


class SignUpResponse(BaseModel):
    """
    Sign-up result. `session` is absent while the email address awaits confirmation.
    """

    user: UserResponse
    session: Optional[SessionResponse] = None
    confirmation_required: bool
