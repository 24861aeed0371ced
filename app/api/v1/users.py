"""Profile endpoints for the signed-in user and admin-only account management."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_credential_store, get_current_user, get_session_service, require_admin
from app.core.exceptions import PermissionDeniedError, ValidationError
from app.models import Role
from app.schemas.auth import (
    ApiResponse,
    CreateUserRequest,
    CurrentUser,
    RoleUpdateRequest,
    StatusUpdateRequest,
    UpdateProfileRequest,
    UpdateUserRequest,
    UserPublic,
    UsersListData,
)
from app.services.session import SessionService
from app.services.user_store import CredentialStore

logger = logging.getLogger(__name__)
router = APIRouter()


def _not_self(admin: CurrentUser, user_id: str, action: str) -> None:
    if admin.id == user_id:
        raise ValidationError(f"You cannot {action} your own account.")


@router.get("/profile", response_model=ApiResponse[UserPublic])
def get_profile(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[SessionService, Depends(get_session_service)],
) -> ApiResponse[UserPublic]:
    user = service.get_profile(current_user.id)
    return ApiResponse(message="Profile loaded.", data=UserPublic.model_validate(user))


@router.put("/profile", response_model=ApiResponse[UserPublic])
def update_profile(
    body: UpdateProfileRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[SessionService, Depends(get_session_service)],
) -> ApiResponse[UserPublic]:
    """Update name and/or email. Role and password cannot be changed here."""
    user = service.update_profile(current_user.id, body.model_dump(exclude_none=True))
    return ApiResponse(message="Profile updated.", data=UserPublic.model_validate(user))


@router.get("", response_model=ApiResponse[UsersListData])
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> ApiResponse[UsersListData]:
    """List accounts (admin only)."""
    users = store.list_users(offset=offset, limit=limit)
    return ApiResponse(
        message="Users listed.",
        data=UsersListData(
            users=[UserPublic.model_validate(u) for u in users],
            total=store.count(),
        ),
    )


@router.post("", response_model=ApiResponse[UserPublic], status_code=status.HTTP_201_CREATED)
def create_user(
    body: CreateUserRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    service: Annotated[SessionService, Depends(get_session_service)],
) -> ApiResponse[UserPublic]:
    """Create an account with any role and status (admin only)."""
    user = service.create_account(
        body.name, body.email, body.password, role=body.role, is_active=body.is_active
    )
    logger.info("User created", extra={"user_id": user.id, "admin_id": admin.id})
    return ApiResponse(message="User created.", data=UserPublic.model_validate(user))


@router.get("/{user_id}", response_model=ApiResponse[UserPublic])
def get_user(
    user_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> ApiResponse[UserPublic]:
    """Fetch one account. Allowed for the account owner and for admins."""
    if current_user.role != Role.ADMIN and current_user.id != user_id:
        raise PermissionDeniedError("You can only view your own account.")
    user = store.get_by_id(user_id)
    return ApiResponse(message="User found.", data=UserPublic.model_validate(user))


@router.put("/{user_id}", response_model=ApiResponse[UserPublic])
def update_user(
    user_id: str,
    body: UpdateUserRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    service: Annotated[SessionService, Depends(get_session_service)],
) -> ApiResponse[UserPublic]:
    """Edit name, email and role of an account. A role change revokes the user's tokens."""
    if body.role is not None and body.role != admin.role:
        _not_self(admin, user_id, "change the role of")
    user = service.update_account(
        user_id, body.model_dump(include={"name", "email"}, exclude_none=True), role=body.role
    )
    logger.info("User updated", extra={"user_id": user.id, "admin_id": admin.id})
    return ApiResponse(message="User updated.", data=UserPublic.model_validate(user))


@router.patch("/{user_id}/role", response_model=ApiResponse[UserPublic])
def update_role(
    user_id: str,
    body: RoleUpdateRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> ApiResponse[UserPublic]:
    """Change a user's role. The user's existing tokens are revoked."""
    _not_self(admin, user_id, "change the role of")
    user = store.set_role(user_id, body.role)
    logger.info(
        "Role changed", extra={"user_id": user.id, "role": user.role, "admin_id": admin.id}
    )
    return ApiResponse(message="Role updated.", data=UserPublic.model_validate(user))


@router.patch("/{user_id}/status", response_model=ApiResponse[UserPublic])
def update_status(
    user_id: str,
    body: StatusUpdateRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> ApiResponse[UserPublic]:
    """Activate or deactivate an account. Deactivation revokes the user's tokens."""
    _not_self(admin, user_id, "change the status of")
    user = store.set_active(user_id, body.is_active)
    logger.info(
        "Account status changed",
        extra={"user_id": user.id, "is_active": user.is_active, "admin_id": admin.id},
    )
    state = "activated" if user.is_active else "deactivated"
    return ApiResponse(message=f"User {state}.", data=UserPublic.model_validate(user))


@router.delete("/{user_id}", response_model=ApiResponse[None])
def delete_user(
    user_id: str,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> ApiResponse[None]:
    _not_self(admin, user_id, "delete")
    store.delete(user_id)
    return ApiResponse(message="User deleted.")
