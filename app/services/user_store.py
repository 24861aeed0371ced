"""Credential store: durable CRUD over user accounts with typed conflict/not-found errors."""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateEmailError, NotFoundError
from app.models import PasswordResetToken, Role, User

logger = logging.getLogger(__name__)

# Fields update_profile is allowed to touch; anything else in the input is ignored.
PROFILE_FIELDS = frozenset({"name", "email"})


def _normalize(email: str) -> str:
    return (email or "").strip().lower()


class CredentialStore:
    """
    Persists User rows through one SQLAlchemy session.

    Every mutating call is its own transaction. Email uniqueness is enforced by the
    unique index on users.email, never by a read-then-insert check.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def create(
        self,
        email: str,
        name: str,
        password_hash: str,
        role: Role = Role.USER,
        is_active: bool = True,
    ) -> User:
        """Insert a new user. Raises DuplicateEmailError if the email is taken."""
        if not password_hash:
            raise ValueError("password_hash must be non-empty")
        user = User(
            email=_normalize(email),
            name=name,
            password_hash=password_hash,
            role=Role(role).value,
            is_active=is_active,
            token_version=0,
        )
        self.db.add(user)
        self._commit_unique()
        self.db.refresh(user)
        return user

    def find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == _normalize(email)).first()

    def find_by_id(self, user_id: str) -> User | None:
        if not user_id:
            return None
        return self.db.get(User, str(user_id))

    def get_by_id(self, user_id: str) -> User:
        user = self.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    def update_password(self, user_id: str, new_hash: str, commit: bool = True) -> User:
        """Store a new hash and bump token_version so existing tokens stop working."""
        if not new_hash:
            raise ValueError("new_hash must be non-empty")
        user = self.get_by_id(user_id)
        user.password_hash = new_hash
        user.token_version = (user.token_version or 0) + 1
        if commit:
            self.db.commit()
        else:
            self.db.flush()
        return user

    def update_profile(self, user_id: str, fields: Mapping[str, Any]) -> User:
        """Apply whitelisted profile fields. Raises DuplicateEmailError on email collision."""
        user = self.get_by_id(user_id)
        for key, value in fields.items():
            if key not in PROFILE_FIELDS or value is None:
                continue
            if key == "email":
                value = _normalize(value)
            setattr(user, key, value)
        self._commit_unique()
        self.db.refresh(user)
        return user

    def set_role(self, user_id: str, role: Role) -> User:
        user = self.get_by_id(user_id)
        user.role = Role(role).value
        user.token_version = (user.token_version or 0) + 1
        self.db.commit()
        return user

    def set_active(self, user_id: str, is_active: bool) -> User:
        user = self.get_by_id(user_id)
        user.is_active = is_active
        if not is_active:
            user.token_version = (user.token_version or 0) + 1
        self.db.commit()
        return user

    def bump_token_version(self, user_id: str) -> User:
        user = self.get_by_id(user_id)
        user.token_version = (user.token_version or 0) + 1
        self.db.commit()
        return user

    def delete(self, user_id: str) -> None:
        user = self.get_by_id(user_id)
        # Reset tokens go first; SQLite does not enforce ON DELETE CASCADE by default.
        self.db.query(PasswordResetToken).filter(
            PasswordResetToken.user_id == user.id
        ).delete(synchronize_session=False)
        self.db.delete(user)
        self.db.commit()
        logger.info("User deleted", extra={"user_id": user.id})

    def list_users(self, offset: int = 0, limit: int = 50) -> list[User]:
        return (
            self.db.query(User)
            .order_by(User.created_at, User.email)
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count(self) -> int:
        return self.db.query(func.count(User.id)).scalar() or 0

    def _commit_unique(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateEmailError() from e
