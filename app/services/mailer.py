"""Outgoing email: welcome notices and password reset links over SMTP."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from email.message import EmailMessage
from typing import TYPE_CHECKING
from urllib.parse import urlencode

import aiosmtplib

from app.core.exceptions import EmailDeliveryError

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.models import User

logger = logging.getLogger(__name__)

SITE_NAME = "Contabil"


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    body: str


def welcome_email(user: User) -> OutgoingEmail:
    return OutgoingEmail(
        to=user.email,
        subject=f"Welcome to {SITE_NAME}",
        body=(
            f"Hello {user.name},\n\n"
            f"Your {SITE_NAME} account has been created. You can now sign in with "
            f"{user.email}.\n\n"
            f"---\n"
            f"If you did not create this account, please contact us."
        ),
    )


def password_reset_email(
    user: User, raw_token: str, settings: Settings
) -> OutgoingEmail:
    link = f"{settings.FRONTEND_URL}/reset-password?{urlencode({'token': raw_token})}"
    return OutgoingEmail(
        to=user.email,
        subject=f"{SITE_NAME}: reset your password",
        body=(
            f"Hello {user.name},\n\n"
            f"Use the link below to choose a new password. It expires in "
            f"{settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes and works once.\n\n"
            f"{link}\n\n"
            f"---\n"
            f"If you did not ask for a reset, you can ignore this email."
        ),
    )


class Mailer:
    """SMTP sender. With EMAIL_ENABLED=false messages are logged instead of sent."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.settings.EMAIL_FROM
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        return message

    async def send_email(self, to: str, subject: str, body: str) -> None:
        """Send one plain-text email. Raises EmailDeliveryError on any SMTP or network failure."""
        if not self.settings.EMAIL_ENABLED:
            logger.info(
                "Email delivery disabled; message not sent",
                extra={"to": to, "subject": subject},
            )
            return

        settings = self.settings
        password = settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else None
        try:
            await aiosmtplib.send(
                self._build_message(to, subject, body),
                hostname=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USERNAME or None,
                password=password or None,
                use_tls=settings.SMTP_USE_TLS,
                start_tls=settings.SMTP_START_TLS and not settings.SMTP_USE_TLS,
                timeout=settings.SMTP_TIMEOUT_SEC,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(f"Could not send email: {e!s}") from e
        logger.info("Email sent", extra={"to": to, "subject": subject})

    async def deliver(self, message: OutgoingEmail) -> bool:
        """Best-effort send: delivery failures are logged, never raised. Returns True on success."""
        try:
            await self.send_email(message.to, message.subject, message.body)
            return True
        except EmailDeliveryError as e:
            logger.warning(
                "Email delivery failed",
                extra={"to": message.to, "subject": message.subject, "reason": e.message[:500]},
            )
            return False
