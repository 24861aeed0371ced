"""Pydantic request/response schemas."""

from app.schemas.auth import (
    ApiResponse,
    AuthData,
    ChangePasswordRequest,
    CreateUserRequest,
    CurrentUser,
    ErrorResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    RoleUpdateRequest,
    StatusUpdateRequest,
    UpdateProfileRequest,
    UpdateUserRequest,
    UserPublic,
    UsersListData,
)
from app.schemas.health import HealthResponse

__all__ = [
    "ApiResponse",
    "AuthData",
    "ChangePasswordRequest",
    "CreateUserRequest",
    "CurrentUser",
    "ErrorResponse",
    "ForgotPasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "RefreshRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "RoleUpdateRequest",
    "StatusUpdateRequest",
    "UpdateProfileRequest",
    "UpdateUserRequest",
    "UserPublic",
    "UsersListData",
]
