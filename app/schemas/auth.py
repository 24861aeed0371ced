"""Request/response schemas for auth and user endpoints. JSON keys are camelCase."""

from datetime import datetime
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models import Role

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case names still work in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[DataT]):
    """Envelope for every response."""

    status: Literal["success", "error"] = "success"
    message: str = ""
    data: DataT | None = None


class ErrorResponse(CamelModel):
    """Envelope for error responses; `code` names the error type."""

    status: Literal["error"] = "error"
    message: str
    code: str
    data: None = None


class RegisterRequest(CamelModel):
    """Self-registration. Format and strength rules are enforced by the session service."""

    name: str = Field(..., max_length=255, description="Display name")
    email: str = Field(..., max_length=255, description="Login email")
    password: str = Field(..., max_length=128, description="Password")
    confirm_password: str = Field(..., max_length=128, description="Password again")


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: str = Field(..., max_length=255, description="Login email")
    password: str = Field(..., max_length=128, description="Password")


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token from login")


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., max_length=128)
    new_password: str = Field(..., max_length=128)


class ForgotPasswordRequest(CamelModel):
    email: str = Field(..., max_length=255)


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1, description="Token from the reset email")
    password: str = Field(..., max_length=128)
    confirm_password: str | None = Field(default=None, max_length=128)


class UpdateProfileRequest(CamelModel):
    """Only these fields can be changed by the account owner."""

    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)


class CreateUserRequest(CamelModel):
    """Admin-created account. Password rules are the same as for self-registration."""

    name: str = Field(..., max_length=255)
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)
    role: Role = Role.USER
    is_active: bool = True


class UpdateUserRequest(CamelModel):
    """Admin edit of another account. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    role: Role | None = None


class RoleUpdateRequest(CamelModel):
    role: Role


class StatusUpdateRequest(CamelModel):
    is_active: bool


class UserPublic(CamelModel):
    """User as returned to clients (never includes the password hash)."""

    id: str
    name: str
    email: str
    role: Role
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CurrentUser(CamelModel):
    """Authenticated user (id, email, name, role) for dependency injection."""

    id: str
    email: str
    name: str
    role: Role


class AuthData(CamelModel):
    """User plus a fresh token pair (register, login, refresh, change-password)."""

    user: UserPublic
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class UsersListData(CamelModel):
    """Response data for GET /users (admin only)."""

    users: list[UserPublic]
    total: int
