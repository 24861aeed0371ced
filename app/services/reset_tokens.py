"""Single-use password reset tokens: issue, consume and purge."""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from app.core.exceptions import ExpiredTokenError, InvalidTokenError
from app.models import PasswordResetToken

logger = logging.getLogger(__name__)

RESET_TOKEN_BYTES = 32


def hash_reset_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(frozen=True)
class IssuedResetToken:
    raw_token: str
    expires_at: datetime


class ResetTokenStore:
    """Stores only SHA-256 hashes; the raw token exists solely in the outgoing email."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def issue(self, user_id: str, ttl: timedelta, now: datetime | None = None) -> IssuedResetToken:
        now = now or datetime.now(UTC)
        raw_token = secrets.token_urlsafe(RESET_TOKEN_BYTES)
        expires_at = now + ttl
        self.db.add(
            PasswordResetToken(
                user_id=user_id,
                token_hash=hash_reset_token(raw_token),
                expires_at=expires_at,
            )
        )
        self.db.commit()
        return IssuedResetToken(raw_token=raw_token, expires_at=expires_at)

    def consume(self, raw_token: str, now: datetime | None = None) -> str:
        """
        Mark the token used and return its user_id. Does not commit; the caller
        commits together with the password update.

        Raises InvalidTokenError if unknown or already used, ExpiredTokenError if stale.
        The used_at IS NULL guard makes concurrent consumers race safely: one wins.
        """
        if not raw_token:
            raise InvalidTokenError("Invalid or already used reset token.")
        now = now or datetime.now(UTC)
        token_hash = hash_reset_token(raw_token)
        row = (
            self.db.query(PasswordResetToken)
            .filter(PasswordResetToken.token_hash == token_hash)
            .first()
        )
        if row is None or row.used_at is not None:
            raise InvalidTokenError("Invalid or already used reset token.")
        if _as_utc(row.expires_at) <= now:
            raise ExpiredTokenError("Reset token has expired.")

        result = self.db.execute(
            update(PasswordResetToken)
            .where(
                PasswordResetToken.id == row.id,
                PasswordResetToken.used_at.is_(None),
            )
            .values(used_at=now)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise InvalidTokenError("Invalid or already used reset token.")
        return row.user_id

    def invalidate_for_user(self, user_id: str, now: datetime | None = None) -> int:
        """Mark every outstanding token of the user as used. Does not commit."""
        now = now or datetime.now(UTC)
        result = self.db.execute(
            update(PasswordResetToken)
            .where(
                PasswordResetToken.user_id == user_id,
                PasswordResetToken.used_at.is_(None),
            )
            .values(used_at=now)
        )
        return result.rowcount or 0

    def purge(self, older_than: timedelta, now: datetime | None = None) -> int:
        """Delete used or expired tokens older than the cutoff. Idempotent."""
        now = now or datetime.now(UTC)
        cutoff = now - older_than
        deleted = (
            self.db.query(PasswordResetToken)
            .filter(
                or_(
                    PasswordResetToken.expires_at < cutoff,
                    PasswordResetToken.used_at < cutoff,
                )
            )
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted > 0:
            logger.info(
                "Reset token purge: cutoff=%s, tokens_deleted=%s",
                cutoff.isoformat(),
                deleted,
            )
        return deleted
