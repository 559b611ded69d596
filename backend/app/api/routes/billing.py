"""Usage & Billing Routes — the caller's AI usage and billing status.

Invariants:
    - Users only ever see their own usage and invoices
    - ai/usage covers all time unless both from and to are given
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user
from app.core.date_ranges import resolve_date_range
from app.infrastructure.database import get_db
from app.models.user import User
from app.services.usage_billing import billing_status, current_month_usage, usage_overview

router = APIRouter(prefix="/api/v1", tags=["billing"])


@router.get("/ai/usage")
async def get_ai_usage(
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    window = resolve_date_range(None, date_from, date_to) if date_from and date_to else None
    return await usage_overview(db, user, window)


@router.get("/ai/usage/current-month")
async def get_current_month_usage(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await current_month_usage(db, user)


@router.get("/billing/status")
async def get_billing_status(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await billing_status(db, user)
