"""Admin Routes — users, plans, CMS pages, site settings, contact inbox and billing runs.

Invariants:
    - Every route requires an admin bearer token (403 otherwise)
    - Admins cannot delete themselves
    - Saving tracking-related site settings invalidates the tracking code cache
    - invoice-check answers 503 when Stripe is not configured
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import parse_uuid, require_admin
from app.core.errors import ConflictError, ResourceNotFoundError
from app.infrastructure.database import get_db
from app.infrastructure.security import hash_password
from app.infrastructure.stripe_billing import StripeBilling
from app.models.cms import CmsPage, ContactSubmission
from app.models.subscription_plan import SubscriptionPlan
from app.models.user import User
from app.schemas.admin import (
    AdminUserCreate, AdminUserUpdate, CmsPageCreate, CmsPageUpdate,
    ContactStatusUpdate, PlanCreate, PlanUpdate, SiteSettingsUpdate,
)
from app.schemas.serialize import cms_page_out, contact_out, plan_out, site_settings_out, user_out
from app.services import tracking_code_cache
from app.services.accounts import create_user
from app.services.site_admin import delete_user, get_site_settings, slug_taken
from app.services.usage_billing import run_invoice_check, usage_by_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


async def _get(db: AsyncSession, model, item_id: str, resource_type: str):
    item = await db.get(model, parse_uuid(item_id, resource_type))
    if not item:
        raise ResourceNotFoundError(resource_type, item_id)
    return item


# ─── Users ──────────────────────────────────────────────────────

@router.get("/users")
async def list_users(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return [user_out(u) for u in result.scalars().all()]


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user_account(
    body: AdminUserCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await create_user(
        db,
        body.email,
        body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        role=body.role.value,
        username=body.username,
        subscription_tier=body.subscription_tier,
    )
    await db.commit()
    await db.refresh(user)
    return user_out(user)


@router.patch("/users/{user_id}")
async def update_user(
    user_id: str,
    body: AdminUserUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await _get(db, User, user_id, "User")
    changes = body.changes()
    password = changes.pop("password", None)
    if password:
        user.password_hash = hash_password(password)
    role = changes.pop("role", None)
    if role is not None:
        user.role = role.value
    for field, value in changes.items():
        if value is not None or field in ("first_name", "last_name"):
            setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    logger.info("User updated by admin", extra={"user_id": str(user.id)})
    return user_out(user)


@router.delete("/users/{user_id}")
async def remove_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await _get(db, User, user_id, "User")
    await delete_user(db, user, admin)
    await db.commit()
    return {"message": "User deleted"}


# ─── Plans ──────────────────────────────────────────────────────

@router.get("/plans")
async def list_plans(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(SubscriptionPlan).order_by(SubscriptionPlan.sort_order, SubscriptionPlan.price)
    )
    return [plan_out(p) for p in result.scalars().all()]


@router.post("/plans", status_code=status.HTTP_201_CREATED)
async def create_plan(
    body: PlanCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    taken = (await db.execute(
        select(SubscriptionPlan.id).where(SubscriptionPlan.slug == body.slug)
    )).first()
    if taken:
        raise ConflictError(f"A plan with slug '{body.slug}' already exists")
    plan = SubscriptionPlan(**body.model_dump())
    db.add(plan)
    await db.commit()
    await db.refresh(plan)
    return plan_out(plan)


@router.patch("/plans/{plan_id}")
async def update_plan(
    plan_id: str,
    body: PlanUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    plan = await _get(db, SubscriptionPlan, plan_id, "Plan")
    for field, value in body.changes().items():
        if value is not None or field == "stripe_price_id":
            setattr(plan, field, value)
    await db.commit()
    await db.refresh(plan)
    return plan_out(plan)


@router.delete("/plans/{plan_id}")
async def delete_plan(
    plan_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    plan = await _get(db, SubscriptionPlan, plan_id, "Plan")
    await db.delete(plan)
    await db.commit()
    return {"message": "Plan deleted"}


# ─── CMS pages ──────────────────────────────────────────────────

@router.get("/pages")
async def list_pages(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(CmsPage).order_by(CmsPage.sort_order, CmsPage.title))
    return [cms_page_out(p) for p in result.scalars().all()]


@router.post("/pages", status_code=status.HTTP_201_CREATED)
async def create_page(
    body: CmsPageCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if await slug_taken(db, body.slug):
        raise ConflictError(f"A page with slug '{body.slug}' already exists")
    page = CmsPage(created_by=admin.id, **body.model_dump())
    db.add(page)
    await db.commit()
    await db.refresh(page)
    return cms_page_out(page)


@router.get("/pages/{page_id}")
async def get_page(
    page_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return cms_page_out(await _get(db, CmsPage, page_id, "Page"))


@router.patch("/pages/{page_id}")
async def update_page(
    page_id: str,
    body: CmsPageUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    page = await _get(db, CmsPage, page_id, "Page")
    changes = body.changes()
    if changes.get("slug") and await slug_taken(db, changes["slug"], exclude_id=page.id):
        raise ConflictError(f"A page with slug '{changes['slug']}' already exists")
    for field, value in changes.items():
        if value is not None or field in ("meta_title", "meta_description", "og_image", "custom_scripts"):
            setattr(page, field, value)
    await db.commit()
    await db.refresh(page)
    return cms_page_out(page)


@router.delete("/pages/{page_id}")
async def delete_page(
    page_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    page = await _get(db, CmsPage, page_id, "Page")
    await db.delete(page)
    await db.commit()
    return {"message": "Page deleted"}


# ─── Site settings ──────────────────────────────────────────────

@router.get("/site-settings")
async def read_site_settings(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    row = await get_site_settings(db)
    await db.commit()
    return site_settings_out(row)


@router.put("/site-settings")
async def save_site_settings(
    body: SiteSettingsUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    row = await get_site_settings(db)
    for field, value in body.changes().items():
        if field == "site_name" and not value:
            continue
        setattr(row, field, value)
    await db.commit()
    await db.refresh(row)
    if body.touches_tracking():
        tracking_code_cache.invalidate()
    logger.info("Site settings saved", extra={"user_id": str(admin.id)})
    return site_settings_out(row)


# ─── Contact inbox ──────────────────────────────────────────────

@router.get("/contacts")
async def list_contacts(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(ContactSubmission).order_by(ContactSubmission.created_at.desc())
    )
    return [contact_out(c) for c in result.scalars().all()]


@router.patch("/contacts/{contact_id}")
async def update_contact_status(
    contact_id: str,
    body: ContactStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    submission = await _get(db, ContactSubmission, contact_id, "Contact submission")
    submission.status = body.status
    await db.commit()
    await db.refresh(submission)
    return contact_out(submission)


@router.delete("/contacts/{contact_id}")
async def delete_contact(
    contact_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    submission = await _get(db, ContactSubmission, contact_id, "Contact submission")
    await db.delete(submission)
    await db.commit()
    return {"message": "Contact submission deleted"}


# ─── Usage & billing ────────────────────────────────────────────

@router.get("/ai-usage")
async def admin_ai_usage(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await usage_by_user(db)


@router.post("/billing/invoice-check")
async def invoice_check(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    billing = StripeBilling()
    result = await run_invoice_check(db, billing)
    await db.commit()
    return result
