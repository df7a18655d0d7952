"""
Authentication API endpoints: sign-up, sign-in, sign-out, session lookup and email confirmation.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Response, status
from fastapi.security import HTTPAuthorizationCredentials
from silver_estates.services.auth import AuthService, account_response
from silver_estates.schemas.auth import (
    SignInRequest,
    SignUpRequest,
    ConfirmEmailRequest,
    SessionResponse,
    SignUpResponse,
    UserResponse
)
from silver_estates.utils.dependencies import (
    CurrentSession,
    get_auth_service,
    get_current_session,
    security
)


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/sign-up",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    description="Create an auth identity and its profile. No session is returned while confirmation is pending."
)
async def sign_up(
    sign_up_data: SignUpRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> SignUpResponse:
    user, profile, issued = await auth_service.sign_up(sign_up_data)

    return SignUpResponse(
        user=account_response(user, profile),
        session=issued.to_response() if issued else None,
        confirmation_required=issued is None
    )


@router.post(
    "/sign-in",
    response_model=SessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign in",
    description="Authenticate with email and password and open a session"
)
async def sign_in(
    sign_in_data: SignInRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> SessionResponse:
    """
    Raises:
        InvalidCredentialsError: If credentials are invalid
        EmailNotConfirmedError: If the account awaits confirmation
    """
    issued = await auth_service.sign_in(
        email=sign_in_data.email,
        password=sign_in_data.password
    )
    return issued.to_response()


@router.post(
    "/sign-out",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Sign out",
    description="Revoke the session behind the bearer token"
)
async def sign_out(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Response:
    if credentials:
        await auth_service.sign_out(credentials.credentials)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/session",
    response_model=SessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Current session",
    description="Resolve the bearer token to its session and user"
)
async def get_session(
    session: CurrentSession = Depends(get_current_session)
) -> SessionResponse:
    return SessionResponse(
        access_token=session.access_token,
        expires_at=session.login_session.expires_at,
        user=account_response(session.user, session.profile)
    )


@router.post(
    "/confirm",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Confirm email address",
    description="Confirm the email address named by a confirmation token"
)
async def confirm_email(
    confirm_data: ConfirmEmailRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.confirm_email(confirm_data.token)
    profile = await auth_service.profile_repo.get_by_id(user.id)
    return account_response(user, profile)
