"""Auth Routes — registration, login, current user and password reset.

Invariants:
    - Responses never include password hashes
    - Login and register both return {"token", "user"}
    - forgot-password answers identically whether or not the account exists
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user
from app.infrastructure.database import get_db
from app.infrastructure.security import create_access_token
from app.models.user import User
from app.schemas.auth import (
    ForgotPasswordRequest, LoginRequest, PromoteAdminRequest,
    RegisterRequest, ResetPasswordRequest,
)
from app.schemas.serialize import user_out
from app.services import accounts

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _session_payload(user: User) -> dict:
    return {
        "token": create_access_token(str(user.id), user.role),
        "user": user_out(user),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    user = await accounts.create_user(
        db, body.email, body.password,
        first_name=body.first_name, last_name=body.last_name,
    )
    await db.commit()
    await db.refresh(user)
    return _session_payload(user)


@router.post("/login")
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await accounts.authenticate(db, body.email, body.password)
    await db.commit()
    logger.info("User logged in", extra={"user_id": str(user.id)})
    return _session_payload(user)


@router.post("/logout")
async def logout(user: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards its copy."""
    return {"message": "Logged out"}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return user_out(user)


@router.post("/forgot-password")
async def forgot_password(body: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    await accounts.request_password_reset(db, body.email)
    await db.commit()
    return {"message": accounts.FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password")
async def reset_password(body: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    await accounts.reset_password(db, body.token, body.password)
    await db.commit()
    return {"message": "Password has been reset successfully. You can now log in."}


@router.post("/promote-admin")
async def promote_admin(body: PromoteAdminRequest, db: AsyncSession = Depends(get_db)):
    user = await accounts.promote_admin(db, body.email, body.secret)
    await db.commit()
    return {"message": f"{user.email} is now an admin", "user": user_out(user)}
