"""
Session service: registration, login, token refresh, logout, password change/reset
and profile updates.

Login attempts move Unauthenticated -> Validating -> Authenticated | Rejected.
Revocation is done by bumping User.token_version, which every token embeds as `ver`.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from app.core.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    ValidationError,
)
from app.core.security import (
    PasswordHasher,
    TokenIssuer,
    TokenType,
    normalize_email,
    validate_name,
    validate_password_strength,
)
from app.models import Role, User
from app.services.mailer import OutgoingEmail, password_reset_email, welcome_email
from app.services.reset_tokens import ResetTokenStore
from app.services.user_store import CredentialStore

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

Notify = Callable[[OutgoingEmail], None]


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"


@dataclass(frozen=True)
class AuthResult:
    user: User
    tokens: TokenPair


class SessionService:
    """
    Orchestrates the credential store, password hasher and token issuer.

    Built per request around that request's DB session; the hasher, token issuer
    and settings are process-wide. `notify` hands outgoing emails to the caller
    (the HTTP layer sends them after the response); it may be None.
    """

    def __init__(
        self,
        store: CredentialStore,
        reset_tokens: ResetTokenStore,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        settings: "Settings",
        notify: Notify | None = None,
    ) -> None:
        self.store = store
        self.reset_tokens = reset_tokens
        self.hasher = hasher
        self.tokens = tokens
        self.settings = settings
        self.notify = notify

    def register(
        self, name: str, email: str, password: str, confirm_password: str
    ) -> AuthResult:
        name = validate_name(name)
        email = normalize_email(email)
        if password != confirm_password:
            raise ValidationError("Passwords do not match.")
        validate_password_strength(password)

        user = self.store.create(
            email=email,
            name=name,
            password_hash=self.hasher.hash(password),
            role=Role.USER,
        )
        logger.info("User registered", extra={"user_id": user.id, "role": user.role})
        self._notify(welcome_email(user))
        return AuthResult(user=user, tokens=self._issue_pair(user))

    def login(self, email: str, password: str) -> AuthResult:
        try:
            normalized = normalize_email(email)
        except ValidationError:
            normalized = None
        user = self.store.find_by_email(normalized) if normalized else None

        if user is None:
            self.hasher.verify_dummy(password or "")
            logger.info("Login rejected", extra={"reason": "unknown_email"})
            raise InvalidCredentialsError()
        if not self.hasher.verify(password or "", user.password_hash):
            logger.info("Login rejected", extra={"user_id": user.id, "reason": "bad_password"})
            raise InvalidCredentialsError()
        if not user.is_active:
            logger.info("Login rejected", extra={"user_id": user.id, "reason": "inactive"})
            raise InvalidCredentialsError()

        logger.info("Login succeeded", extra={"user_id": user.id})
        return AuthResult(user=user, tokens=self._issue_pair(user))

    def refresh(self, refresh_token: str) -> AuthResult:
        """Exchange a refresh token for a new access token and a rotated refresh token."""
        claims = self.tokens.verify(refresh_token, TokenType.REFRESH)
        user = self.store.find_by_id(claims.user_id)
        if user is None or not user.is_active:
            raise InvalidTokenError("Invalid refresh token.")
        if claims.version != user.token_version:
            logger.info("Refresh rejected: revoked token", extra={"user_id": user.id})
            raise InvalidTokenError("Refresh token has been revoked.")
        logger.info("Tokens refreshed", extra={"user_id": user.id})
        return AuthResult(user=user, tokens=self._issue_pair(user))

    def logout(self, user_id: str) -> None:
        """Revoke every outstanding token of the user (all devices)."""
        self.store.bump_token_version(user_id)
        logger.info("User logged out", extra={"user_id": user_id})

    def get_profile(self, user_id: str) -> User:
        return self.store.get_by_id(user_id)

    def change_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> AuthResult:
        """Rehash and revoke old tokens; returns a fresh pair for the calling device."""
        user = self.store.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        if not self.hasher.verify(current_password or "", user.password_hash):
            logger.info("Password change rejected", extra={"user_id": user.id})
            raise InvalidCredentialsError("Current password is incorrect.")
        validate_password_strength(new_password)

        user = self.store.update_password(user.id, self.hasher.hash(new_password))
        logger.info("Password changed", extra={"user_id": user.id})
        return AuthResult(user=user, tokens=self._issue_pair(user))

    def update_profile(self, user_id: str, fields: Mapping[str, Any]) -> User:
        changes: dict[str, Any] = {}
        if fields.get("name") is not None:
            changes["name"] = validate_name(fields["name"])
        if fields.get("email") is not None:
            changes["email"] = normalize_email(fields["email"])
        if not changes:
            return self.store.get_by_id(user_id)
        user = self.store.update_profile(user_id, changes)
        logger.info(
            "Profile updated", extra={"user_id": user.id, "fields": ",".join(sorted(changes))}
        )
        return user

    def create_account(
        self,
        name: str,
        email: str,
        password: str,
        role: Role = Role.USER,
        is_active: bool = True,
    ) -> User:
        """Admin path: create an account with any role and status. No tokens, no welcome email."""
        name = validate_name(name)
        email = normalize_email(email)
        validate_password_strength(password)
        user = self.store.create(
            email=email,
            name=name,
            password_hash=self.hasher.hash(password),
            role=role,
            is_active=is_active,
        )
        logger.info(
            "Account created by admin",
            extra={"user_id": user.id, "role": user.role, "is_active": user.is_active},
        )
        return user

    def update_account(
        self, user_id: str, fields: Mapping[str, Any], role: Role | None = None
    ) -> User:
        """Admin path: update name/email like update_profile, plus the role when it changes."""
        user = self.update_profile(user_id, fields)
        if role is not None and Role(role).value != user.role:
            user = self.store.set_role(user_id, role)
            logger.info("Role changed", extra={"user_id": user.id, "role": user.role})
        return user

    def forgot_password(self, email: str) -> None:
        """Issue and email a reset token. Unknown or inactive accounts are a silent no-op."""
        try:
            normalized = normalize_email(email)
        except ValidationError:
            return
        user = self.store.find_by_email(normalized)
        if user is None or not user.is_active:
            logger.info("Password reset requested for unknown or inactive account")
            return
        issued = self.reset_tokens.issue(
            user.id, timedelta(minutes=self.settings.PASSWORD_RESET_EXPIRE_MINUTES)
        )
        logger.info(
            "Password reset token issued",
            extra={"user_id": user.id, "expires_at": issued.expires_at.isoformat()},
        )
        self._notify(password_reset_email(user, issued.raw_token, self.settings))

    def reset_password(
        self, token: str, new_password: str, confirm_password: str | None = None
    ) -> None:
        if confirm_password is not None and new_password != confirm_password:
            raise ValidationError("Passwords do not match.")
        validate_password_strength(new_password)
        new_hash = self.hasher.hash(new_password)

        user_id = self.reset_tokens.consume(token)
        self.reset_tokens.invalidate_for_user(user_id)
        # Commits the consumed token(s) and the new password together.
        self.store.update_password(user_id, new_hash)
        logger.info("Password reset", extra={"user_id": user_id})

    def _issue_pair(self, user: User) -> TokenPair:
        return TokenPair(
            access_token=self.tokens.issue_access_token(user),
            refresh_token=self.tokens.issue_refresh_token(user),
            expires_in=int(self.tokens.access_ttl.total_seconds()),
        )

    def _notify(self, message: OutgoingEmail) -> None:
        if self.notify is not None:
            self.notify(message)
