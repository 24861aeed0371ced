"""Shared test helpers: settings for an in-memory SQLite DB and cheap bcrypt rounds."""

from typing import Any

from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import build_engine, build_session_factory
from app.core.security import PasswordHasher, TokenIssuer
from app.models import Base
from app.services.mailer import OutgoingEmail
from app.services.reset_tokens import ResetTokenStore
from app.services.session import SessionService
from app.services.user_store import CredentialStore

STRONG_PASSWORD = "Senha123!"
OTHER_STRONG_PASSWORD = "NovaSenha456"


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": "test-access-secret",
        "JWT_REFRESH_SECRET": "test-refresh-secret",
        "BCRYPT_ROUNDS": 4,
        "EMAIL_ENABLED": False,
        "FRONTEND_URL": "https://www.contabil.test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_db(settings: Settings | None = None) -> Session:
    """Fresh in-memory database with all tables created."""
    engine = build_engine(settings or make_settings())
    Base.metadata.create_all(engine)
    return build_session_factory(engine)()


class Outbox:
    """Collects emails handed to SessionService.notify."""

    def __init__(self) -> None:
        self.messages: list[OutgoingEmail] = []

    def __call__(self, message: OutgoingEmail) -> None:
        self.messages.append(message)


def make_service(
    db: Session, settings: Settings | None = None, outbox: Outbox | None = None
) -> SessionService:
    settings = settings or make_settings()
    return SessionService(
        store=CredentialStore(db),
        reset_tokens=ResetTokenStore(db),
        hasher=PasswordHasher(rounds=settings.BCRYPT_ROUNDS),
        tokens=TokenIssuer.from_settings(settings),
        settings=settings,
        notify=outbox,
    )


def reset_token_from(message: OutgoingEmail) -> str:
    """Pull the raw token out of a password reset email body."""
    for line in message.body.splitlines():
        if "reset-password?token=" in line:
            return line.split("token=", 1)[1].strip()
    raise AssertionError("No reset link in email body")
