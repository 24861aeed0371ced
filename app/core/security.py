"""Password hashing, JWT issuance/verification and credential input rules."""

import enum
import re
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Protocol

import bcrypt
import jwt

from app.core.exceptions import ExpiredTokenError, InvalidTokenError, ValidationError

if TYPE_CHECKING:
    from app.core.config import Settings

DEFAULT_BCRYPT_ROUNDS = 12
# bcrypt ignores input past 72 bytes, so longer passwords are refused rather than truncated.
BCRYPT_MAX_BYTES = 72

# Min/max lengths for input validation.
NAME_MIN_LEN = 2
NAME_MAX_LEN = 255
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_BYTES = BCRYPT_MAX_BYTES

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class TokenType(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenSubject(Protocol):
    """Anything tokens can be issued for (the User model satisfies it)."""

    id: str
    role: str
    token_version: int


@dataclass(frozen=True)
class TokenClaims:
    """Decoded, verified payload of an access or refresh token."""

    user_id: str
    role: str
    token_type: TokenType
    version: int
    jti: str
    issued_at: datetime
    expires_at: datetime


class PasswordHasher:
    """Bcrypt hash/verify with a configurable work factor."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self.rounds = rounds
        self._dummy_hash = self.hash("Dummy-password-0")

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. A new salt is generated on every call."""
        if not plain_password:
            raise ValueError("Cannot hash an empty password")
        pw_bytes = plain_password.encode("utf-8")
        if len(pw_bytes) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Cannot hash a password longer than {BCRYPT_MAX_BYTES} bytes")
        return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain_password: str, hashed: str) -> bool:
        """Verify a plain password against a stored hash. Malformed hashes and over-long input give False."""
        if not plain_password or not hashed:
            return False
        pw_bytes = plain_password.encode("utf-8")
        if len(pw_bytes) > BCRYPT_MAX_BYTES:
            return False
        try:
            return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    def verify_dummy(self, plain_password: str) -> None:
        """Spend one verify on a throwaway hash so unknown-account paths cost the same as real ones."""
        self.verify(plain_password or "x", self._dummy_hash)


class TokenIssuer:
    """
    Creates and validates signed JWTs.

    Access and refresh tokens use separate secrets and carry a `type` claim, so
    neither can be used in place of the other. Every token embeds the user's
    token_version as `ver`; callers compare it with the stored value to reject
    revoked tokens. Rotating a secret invalidates all outstanding tokens of that kind.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ) -> None:
        self._secrets = {TokenType.ACCESS: access_secret, TokenType.REFRESH: refresh_secret}
        self._ttls = {TokenType.ACCESS: access_ttl, TokenType.REFRESH: refresh_ttl}
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TokenIssuer":
        return cls(
            access_secret=settings.JWT_SECRET.get_secret_value(),
            refresh_secret=settings.JWT_REFRESH_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )

    @property
    def access_ttl(self) -> timedelta:
        return self._ttls[TokenType.ACCESS]

    def issue_access_token(self, user: TokenSubject, now: datetime | None = None) -> str:
        return self._issue(user, TokenType.ACCESS, now)

    def issue_refresh_token(self, user: TokenSubject, now: datetime | None = None) -> str:
        return self._issue(user, TokenType.REFRESH, now)

    def _issue(self, user: TokenSubject, token_type: TokenType, now: datetime | None) -> str:
        issued_at = now or datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": str(user.id),
            "role": str(user.role),
            "type": token_type.value,
            "ver": int(user.token_version or 0),
            "jti": uuid.uuid4().hex,
            "iat": issued_at,
            "exp": issued_at + self._ttls[token_type],
        }
        return jwt.encode(payload, self._secrets[token_type], algorithm=self.algorithm)

    def verify(self, token: str, expected_type: TokenType) -> TokenClaims:
        """
        Decode and validate a token of the expected type.
        Raises ExpiredTokenError when expired and InvalidTokenError for anything else wrong.
        """
        if not token:
            raise InvalidTokenError()
        try:
            payload = jwt.decode(
                token,
                self._secrets[expected_type],
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat", "sub", "type"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredTokenError() from e
        except jwt.PyJWTError as e:
            raise InvalidTokenError() from e

        if payload.get("type") != expected_type.value:
            raise InvalidTokenError("Wrong token type.")
        try:
            return TokenClaims(
                user_id=str(payload["sub"]),
                role=str(payload.get("role", "")),
                token_type=expected_type,
                version=int(payload.get("ver", 0)),
                jti=str(payload.get("jti", "")),
                issued_at=datetime.fromtimestamp(payload["iat"], UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], UTC),
            )
        except (TypeError, ValueError) as e:
            raise InvalidTokenError("Invalid token payload.") from e


def normalize_email(email: str | None) -> str:
    """Trim and lower-case an email; raise ValidationError if it is not address-shaped."""
    value = (email or "").strip().lower()
    if not value:
        raise ValidationError("Email is required.")
    if len(value) > EMAIL_MAX_LEN or not EMAIL_RE.match(value):
        raise ValidationError("Invalid email format.")
    return value


def validate_name(name: str | None) -> str:
    value = (name or "").strip()
    if not (NAME_MIN_LEN <= len(value) <= NAME_MAX_LEN):
        raise ValidationError(
            f"Name must be between {NAME_MIN_LEN} and {NAME_MAX_LEN} characters."
        )
    return value


def validate_password_strength(password: str | None) -> str:
    """Enforce length (8 chars up to 72 UTF-8 bytes) and the character-class rules."""
    value = password or ""
    if len(value) < PASSWORD_MIN_LEN:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LEN} characters.")
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes.")
    if not re.search(r"[a-z]", value):
        raise ValidationError("Password must contain at least one lowercase letter.")
    if not re.search(r"[A-Z]", value):
        raise ValidationError("Password must contain at least one uppercase letter.")
    if not re.search(r"\d", value):
        raise ValidationError("Password must contain at least one number.")
    return value
