"""Auth endpoints: register, login, refresh, logout, me, change/forgot/reset password."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.deps import get_current_user, get_session_service
from app.schemas.auth import (
    ApiResponse,
    AuthData,
    ChangePasswordRequest,
    CurrentUser,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserPublic,
)
from app.services.session import AuthResult, SessionService

router = APIRouter()

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a reset link has been sent."


def _auth_data(result: AuthResult) -> AuthData:
    return AuthData(
        user=UserPublic.model_validate(result.user),
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        token_type=result.tokens.token_type,
        expires_in=result.tokens.expires_in,
    )


@router.post(
    "/register",
    response_model=ApiResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> ApiResponse[AuthData]:
    """
    Create an account with role USER and return it with an access/refresh token pair.
    A second registration with the same email fails with 409.
    """
    result = service.register(body.name, body.email, body.password, body.confirm_password)
    return ApiResponse(message="User registered successfully.", data=_auth_data(result))


@router.post("/login", response_model=ApiResponse[AuthData])
def login(
    body: LoginRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> ApiResponse[AuthData]:
    """
    Authenticate with email and password; returns access and refresh tokens.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    result = service.login(body.email, body.password)
    return ApiResponse(message="Login successful.", data=_auth_data(result))


@router.post("/refresh-token", response_model=ApiResponse[AuthData])
def refresh_token(
    body: RefreshRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> ApiResponse[AuthData]:
    """Exchange a refresh token for a new access token and a rotated refresh token."""
    result = service.refresh(body.refresh_token)
    return ApiResponse(message="Tokens refreshed.", data=_auth_data(result))


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[SessionService, Depends(get_session_service)],
) -> ApiResponse[None]:
    """Sign out everywhere: every token issued so far for this user stops working."""
    service.logout(current_user.id)
    return ApiResponse(message="Logged out.")


@router.get("/me", response_model=ApiResponse[UserPublic])
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[SessionService, Depends(get_session_service)],
) -> ApiResponse[UserPublic]:
    user = service.get_profile(current_user.id)
    return ApiResponse(message="Current user.", data=UserPublic.model_validate(user))


@router.post("/change-password", response_model=ApiResponse[AuthData])
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[SessionService, Depends(get_session_service)],
) -> ApiResponse[AuthData]:
    """Change password; other sessions are revoked and this device gets a new token pair."""
    result = service.change_password(
        current_user.id, body.current_password, body.new_password
    )
    return ApiResponse(message="Password changed.", data=_auth_data(result))


@router.post("/forgot-password", response_model=ApiResponse[None])
def forgot_password(
    body: ForgotPasswordRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> ApiResponse[None]:
    """Email a single-use reset link. The response does not reveal whether the email exists."""
    service.forgot_password(body.email)
    return ApiResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=ApiResponse[None])
def reset_password(
    body: ResetPasswordRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> ApiResponse[None]:
    service.reset_password(body.token, body.password, body.confirm_password)
    return ApiResponse(message="Password has been reset. Please log in again.")
