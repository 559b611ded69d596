"""Security Primitives — bcrypt password hashing and signed JWT access tokens.

Invariants:
    - Passwords are hashed with bcrypt cost 12; plaintext never leaves this module
    - Access tokens carry sub (user id) and exp; expired or tampered tokens raise
      AuthenticationError, never a library exception
    - Password reset tokens are 32 random bytes, hex encoded

Design Decisions:
    - bcrypt + PyJWT directly over passlib: both are maintained, passlib is not
    - Stateless bearer tokens over server sessions: the API is consumed cross-origin
      by the dashboard and has no cookie store (ADR: no session table)
"""

import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from app.config import get_settings
from app.core.errors import AuthenticationError

BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    return bcrypt.hashpw(
        password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS),
    ).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(user_id: str, role: str) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.access_token_ttl_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Session expired, please log in again")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid authentication token")


def new_reset_token() -> str:
    return secrets.token_hex(32)
