"""Shared FastAPI dependencies: services built per request, current user and admin guards."""

from functools import partial
from typing import Annotated

from fastapi import BackgroundTasks, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import InvalidTokenError, PermissionDeniedError
from app.core.security import TokenType
from app.models import Role
from app.schemas.auth import CurrentUser
from app.services.mailer import Mailer, OutgoingEmail
from app.services.reset_tokens import ResetTokenStore
from app.services.session import SessionService
from app.services.user_store import CredentialStore

security = HTTPBearer(auto_error=False)


def _schedule_email(background_tasks: BackgroundTasks, mailer: Mailer, message: OutgoingEmail) -> None:
    background_tasks.add_task(mailer.deliver, message)


def get_credential_store(db: Annotated[Session, Depends(get_db)]) -> CredentialStore:
    return CredentialStore(db)


def get_session_service(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
) -> SessionService:
    """Per-request SessionService; emails are sent as background tasks after the response."""
    state = request.app.state
    return SessionService(
        store=CredentialStore(db),
        reset_tokens=ResetTokenStore(db),
        hasher=state.password_hasher,
        tokens=state.token_issuer,
        settings=state.settings,
        notify=partial(_schedule_email, background_tasks, state.mailer),
    )


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> CurrentUser:
    """Require a valid Bearer access token for an active user whose tokens are not revoked."""
    if credentials is None:
        raise InvalidTokenError("Not authenticated.")
    claims = request.app.state.token_issuer.verify(credentials.credentials, TokenType.ACCESS)
    user = store.find_by_id(claims.user_id)
    if user is None or not user.is_active:
        raise InvalidTokenError("User not found or inactive.")
    if claims.version != user.token_version:
        raise InvalidTokenError("Token has been revoked.")
    return CurrentUser.model_validate(user)


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Require an authenticated user with role ADMIN. Raises 403 for anyone else."""
    if current_user.role != Role.ADMIN:
        raise PermissionDeniedError()
    return current_user
