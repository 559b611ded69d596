"""Mailer — plain-text transactional email over SMTP.

Invariants:
    - Unconfigured SMTP raises ServiceNotConfiguredError; callers decide whether to surface it
    - SMTP and socket failures are mapped to ExternalServiceError
    - The blocking smtplib session runs in a worker thread, never on the event loop
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from app.config import get_settings
from app.core.errors import ExternalServiceError, ServiceNotConfiguredError

logger = logging.getLogger(__name__)


def _send_sync(message: EmailMessage) -> None:
    settings = get_settings()
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as server:
        if settings.smtp_use_tls:
            server.starttls()
        if settings.smtp_username and settings.smtp_password:
            server.login(settings.smtp_username, settings.smtp_password)
        server.send_message(message)


async def send_email(to: str, subject: str, body: str) -> None:
    settings = get_settings()
    if not settings.smtp_configured:
        raise ServiceNotConfiguredError("SMTP")

    message = EmailMessage()
    message["From"] = formataddr((settings.smtp_from_name, settings.smtp_from_email))
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)

    try:
        await asyncio.to_thread(_send_sync, message)
    except (smtplib.SMTPException, OSError) as e:
        raise ExternalServiceError("SMTP", str(e))
    logger.info(f"Email sent: {subject}")


def password_reset_email(reset_url: str, ttl_minutes: int) -> tuple[str, str]:
    subject = "Reset your My User Journey password"
    body = (
        "We received a request to reset your password.\n\n"
        f"Open this link to choose a new one:\n{reset_url}\n\n"
        f"The link expires in {ttl_minutes} minutes. If you did not ask for a reset, "
        "you can ignore this email."
    )
    return subject, body


def contact_notification_email(name: str, email: str, subject: str | None, message: str) -> tuple[str, str]:
    return (
        f"New contact form submission: {subject or 'No subject'}",
        f"From: {name} <{email}>\n\n{message}",
    )
