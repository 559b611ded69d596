"""Usage Billing — AI usage rollups and monthly Stripe invoicing.

Invariants:
    - Usage is billed per calendar month (UTC); invoice-check bills the month before now
    - A user is invoiced at most once per period: any non-cancelled invoice blocks another
    - Only users whose period cost reaches billing_threshold_usd are invoiced
    - The local invoice stores USD and the GBP equivalent at the configured rate

Design Decisions:
    - One Stripe failure does not abort the run: the user is reported under "failed"
      and retried on the next check (ADR: admin-triggered batch, partial progress kept)
"""

import logging
import uuid
from collections import defaultdict
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.date_ranges import DateRange, month_bounds, previous_month_bounds
from app.core.domain_types import InvoiceStatus
from app.core.errors import ExternalServiceError
from app.core.usage_costs import summarize_usage, usd_to_gbp
from app.db.base import utcnow
from app.infrastructure.stripe_billing import StripeBilling
from app.models.ai_usage_log import AIUsageLog
from app.models.billing import Invoice, StripeCustomer
from app.models.user import User
from app.schemas.serialize import invoice_out, plan_out, usage_log_out
from app.services.projects import plan_for

logger = logging.getLogger(__name__)

RECENT_LOGS = 50


async def usage_logs(
    db: AsyncSession, user_id: uuid.UUID | None = None, window: DateRange | None = None,
) -> list[AIUsageLog]:
    query = select(AIUsageLog)
    if user_id is not None:
        query = query.where(AIUsageLog.user_id == user_id)
    if window is not None:
        query = query.where(
            AIUsageLog.created_at >= window.start, AIUsageLog.created_at <= window.end,
        )
    result = await db.execute(query.order_by(AIUsageLog.created_at.desc()))
    return list(result.scalars().all())


async def usage_overview(db: AsyncSession, user: User, window: DateRange | None = None) -> dict:
    logs = await usage_logs(db, user.id, window)
    return {
        **summarize_usage(logs),
        "recent": [usage_log_out(log) for log in logs[:RECENT_LOGS]],
    }


async def current_month_usage(db: AsyncSession, user: User, now: datetime | None = None) -> dict:
    settings = get_settings()
    window = month_bounds(now or utcnow())
    summary = summarize_usage(await usage_logs(db, user.id, window))
    return {
        **summary,
        "billingThresholdUsd": settings.billing_threshold_usd,
        "willBeInvoiced": summary["totalCostUsd"] >= settings.billing_threshold_usd,
        "periodStart": window.start.isoformat(),
        "periodEnd": window.end.isoformat(),
    }


async def billing_status(db: AsyncSession, user: User) -> dict:
    settings = get_settings()
    month = summarize_usage(await usage_logs(db, user.id, month_bounds(utcnow())))
    invoices = (await db.execute(
        select(Invoice).where(Invoice.user_id == user.id).order_by(Invoice.created_at.desc())
    )).scalars().all()
    plan = await plan_for(db, user)
    return {
        "plan": plan_out(plan) if plan else None,
        "subscriptionTier": user.subscription_tier,
        "subscriptionStatus": user.subscription_status,
        "currentMonthUsageUsd": month["totalCostUsd"],
        "currentMonthUsageGbp": usd_to_gbp(month["totalCostUsd"], settings.usd_to_gbp_rate),
        "billingThresholdUsd": settings.billing_threshold_usd,
        "stripeConfigured": settings.stripe_configured,
        "invoices": [invoice_out(i) for i in invoices],
    }


async def usage_by_user(db: AsyncSession, now: datetime | None = None) -> dict:
    """Admin view: current-month cost per user, highest first."""
    window = month_bounds(now or utcnow())
    logs = await usage_logs(db, window=window)
    per_user: dict[uuid.UUID, list[AIUsageLog]] = defaultdict(list)
    for log in logs:
        per_user[log.user_id].append(log)

    users = {
        u.id: u for u in (await db.execute(
            select(User).where(User.id.in_(list(per_user)))
        )).scalars().all()
    } if per_user else {}
    rows = []
    for user_id, user_logs in per_user.items():
        summary = summarize_usage(user_logs)
        user = users.get(user_id)
        rows.append({
            "userId": str(user_id),
            "email": user.email if user else None,
            "username": user.username if user else None,
            "totalCalls": summary["totalCalls"],
            "totalCostUsd": summary["totalCostUsd"],
            "byFeature": summary["byFeature"],
        })
    rows.sort(key=lambda r: r["totalCostUsd"], reverse=True)
    return {
        "usageByUser": rows,
        "billingThresholdUsd": get_settings().billing_threshold_usd,
        "periodStart": window.start.isoformat(),
        "periodEnd": window.end.isoformat(),
    }


async def _already_invoiced(db: AsyncSession, user_id: uuid.UUID, period: DateRange) -> bool:
    result = await db.execute(
        select(Invoice.id)
        .where(Invoice.user_id == user_id)
        .where(Invoice.period_start == period.start)
        .where(Invoice.status != InvoiceStatus.CANCELLED.value)
    )
    return result.first() is not None


async def _stripe_customer_id(db: AsyncSession, billing: StripeBilling, user: User) -> str:
    existing = (await db.execute(
        select(StripeCustomer).where(StripeCustomer.user_id == user.id)
    )).scalar_one_or_none()
    if existing:
        return existing.stripe_customer_id
    customer_id = await billing.create_customer(str(user.id), user.email)
    db.add(StripeCustomer(user_id=user.id, stripe_customer_id=customer_id, email=user.email))
    await db.flush()
    return customer_id


async def run_invoice_check(
    db: AsyncSession, billing: StripeBilling, now: datetime | None = None,
) -> dict:
    """Invoice every user over the threshold for last month. Caller commits."""
    settings = get_settings()
    period = previous_month_bounds(now or utcnow())
    logs = await usage_logs(db, window=period)
    per_user: dict[uuid.UUID, list[AIUsageLog]] = defaultdict(list)
    for log in logs:
        per_user[log.user_id].append(log)

    invoiced, failed = [], []
    skipped = 0
    for user_id, user_logs in per_user.items():
        summary = summarize_usage(user_logs)
        amount = summary["totalCostUsd"]
        if amount < settings.billing_threshold_usd or await _already_invoiced(db, user_id, period):
            skipped += 1
            continue
        user = await db.get(User, user_id)
        if not user:
            skipped += 1
            continue

        breakdown = {
            row["feature"]: {"calls": row["calls"], "costUsd": row["costUsd"]}
            for row in summary["byFeature"]
        }
        try:
            customer_id = await _stripe_customer_id(db, billing, user)
            stripe_invoice_id = await billing.create_usage_invoice(
                customer_id, str(user.id), period.start, period.end, breakdown,
            )
        except ExternalServiceError as e:
            logger.error(
                f"Invoicing failed: {e.message}",
                extra={"user_id": str(user.id), "error_code": e.code},
            )
            failed.append({"userId": str(user.id), "email": user.email, "error": e.message})
            continue

        db.add(Invoice(
            user_id=user.id,
            stripe_invoice_id=stripe_invoice_id,
            amount_usd=amount,
            amount_gbp=usd_to_gbp(amount, settings.usd_to_gbp_rate),
            status=InvoiceStatus.SENT.value,
            period_start=period.start,
            period_end=period.end,
        ))
        await db.flush()
        invoiced.append({"userId": str(user.id), "email": user.email, "amountUsd": amount})

    logger.info(f"Invoice check: {len(invoiced)} invoiced, {len(failed)} failed, {skipped} skipped")
    return {
        "periodStart": period.start.isoformat(),
        "periodEnd": period.end.isoformat(),
        "invoiced": invoiced,
        "failed": failed,
        "skipped": skipped,
    }
