"""Accounts — registration, login, password reset and admin promotion.

Invariants:
    - Emails are stored lowercased; lookups compare lowercased
    - Usernames are unique: email local part, then local part + 1, 2, ...
    - ADMIN_EMAIL is always admin: created as admin and promoted on login
    - forgot-password never reveals whether an account exists
    - A reset token is single use and valid for password_reset_ttl_minutes

Design Decisions:
    - Functions over a class: each operation is one short transaction (ADR: simplicity)
    - Reset email failures are logged, never surfaced (the response is generic anyway)
"""

import hmac
import logging
import re
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.date_ranges import ensure_utc
from app.core.domain_types import UserRole
from app.core.errors import (
    AnalyticsError, AuthenticationError, ConflictError, PermissionDeniedError,
    ResourceNotFoundError, ValidationFailedError,
)
from app.db.base import utcnow
from app.infrastructure.mailer import password_reset_email, send_email
from app.infrastructure.security import hash_password, new_reset_token, verify_password
from app.models.user import PasswordReset, User

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent."
)
_USERNAME_UNSAFE = re.compile(r"[^a-zA-Z0-9._-]")


def _is_admin_email(email: str) -> bool:
    admin_email = get_settings().admin_email
    return bool(admin_email) and email.lower() == admin_email.strip().lower()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def unique_username(db: AsyncSession, email: str) -> str:
    base = _USERNAME_UNSAFE.sub("", email.split("@")[0]) or "user"
    candidate, suffix = base, 0
    while (await db.execute(
        select(User.id).where(User.username == candidate)
    )).first():
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


async def create_user(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: str | None = None,
    last_name: str | None = None,
    role: str | None = None,
    username: str | None = None,
    subscription_tier: str = "free",
) -> User:
    """Insert a user; 409 on duplicate email or username. Caller commits."""
    email = email.strip().lower()
    if await get_user_by_email(db, email):
        raise ConflictError("An account with this email already exists")
    if username:
        taken = (await db.execute(select(User.id).where(User.username == username))).first()
        if taken:
            raise ConflictError(f"Username '{username}' is already taken")
    else:
        username = await unique_username(db, email)

    if role is None:
        role = UserRole.ADMIN.value if _is_admin_email(email) else UserRole.USER.value
    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        first_name=first_name,
        last_name=last_name,
        subscription_tier=subscription_tier,
    )
    db.add(user)
    await db.flush()
    logger.info(f"User created: {username}", extra={"user_id": str(user.id)})
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise PermissionDeniedError("Account is deactivated")
    if _is_admin_email(user.email) and not user.is_admin:
        user.role = UserRole.ADMIN.value
        logger.info("Promoted configured admin email", extra={"user_id": str(user.id)})
    return user


async def request_password_reset(db: AsyncSession, email: str) -> None:
    """Store a reset token and email it when the account exists. Caller commits."""
    user = await get_user_by_email(db, email)
    if not user:
        return
    settings = get_settings()
    token = new_reset_token()
    db.add(PasswordReset(
        user_id=user.id,
        token=token,
        expires_at=utcnow() + timedelta(minutes=settings.password_reset_ttl_minutes),
    ))
    await db.flush()

    reset_url = f"{settings.public_base_url.rstrip('/')}/reset-password?token={token}"
    subject, body = password_reset_email(reset_url, settings.password_reset_ttl_minutes)
    try:
        await send_email(user.email, subject, body)
    except AnalyticsError as e:
        logger.warning(
            f"Password reset email not sent: {e.message}",
            extra={"user_id": str(user.id), "error_code": e.code},
        )


async def reset_password(db: AsyncSession, token: str, password: str) -> None:
    reset = (await db.execute(
        select(PasswordReset).where(PasswordReset.token == token)
    )).scalar_one_or_none()
    if not reset:
        raise ValidationFailedError("Invalid or expired reset token", field="token")
    if reset.used:
        raise ValidationFailedError("This reset link has already been used", field="token")
    if ensure_utc(reset.expires_at) < utcnow():
        raise ValidationFailedError("This reset link has expired", field="token")

    user = await db.get(User, reset.user_id)
    if not user:
        raise ValidationFailedError("Invalid or expired reset token", field="token")
    user.password_hash = hash_password(password)
    user.updated_at = utcnow()
    reset.used = True
    logger.info("Password reset completed", extra={"user_id": str(user.id)})


async def promote_admin(db: AsyncSession, email: str, secret: str) -> User:
    if not hmac.compare_digest(secret.encode("utf-8"), get_settings().jwt_secret.encode("utf-8")):
        raise PermissionDeniedError("Invalid admin secret")
    user = await get_user_by_email(db, email)
    if not user:
        raise ResourceNotFoundError("User", email)
    user.role = UserRole.ADMIN.value
    logger.info("User promoted to admin", extra={"user_id": str(user.id)})
    return user
