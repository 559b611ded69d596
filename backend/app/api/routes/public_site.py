"""Public Site Routes — unauthenticated content for the marketing site.

Invariants:
    - Only active plans and published pages are visible
    - Public site settings never include server-side secrets
    - sitemap.xml lists the static marketing routes plus every published CMS page
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.errors import ResourceNotFoundError
from app.core.sitemap import build_sitemap
from app.infrastructure.database import get_db
from app.models.cms import CmsPage, SiteSettings
from app.models.subscription_plan import SubscriptionPlan
from app.schemas.admin import ContactCreate
from app.schemas.serialize import cms_page_out, contact_out, plan_out, site_settings_out
from app.services.site_admin import PUBLISHED, published_pages, submit_contact
from app.services.tracking_code_cache import get_tracking_codes

router = APIRouter(prefix="/api/v1/public", tags=["public"])
sitemap_router = APIRouter(tags=["public"])


@router.get("/plans")
async def list_active_plans(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(SubscriptionPlan)
        .where(SubscriptionPlan.is_active.is_(True))
        .order_by(SubscriptionPlan.sort_order, SubscriptionPlan.price)
    )
    return [plan_out(p) for p in result.scalars().all()]


@router.get("/pages")
async def list_published_pages(db: AsyncSession = Depends(get_db)):
    return [cms_page_out(p) for p in await published_pages(db)]


@router.get("/pages/{slug:path}")
async def get_published_page(slug: str, db: AsyncSession = Depends(get_db)):
    page = (await db.execute(
        select(CmsPage).where(CmsPage.slug == slug, CmsPage.status == PUBLISHED)
    )).scalar_one_or_none()
    if not page:
        raise ResourceNotFoundError("Page", slug)
    return cms_page_out(page)


@router.get("/site-settings")
async def public_site_settings(db: AsyncSession = Depends(get_db)):
    row = (await db.execute(select(SiteSettings).limit(1))).scalar_one_or_none()
    if row is None:
        return {"siteName": "My User Journey"}
    return site_settings_out(row, public=True)


@router.get("/tracking-codes")
async def tracking_codes(db: AsyncSession = Depends(get_db)):
    return await get_tracking_codes(db)


@router.post("/contact", status_code=status.HTTP_201_CREATED)
async def submit_contact_form(body: ContactCreate, db: AsyncSession = Depends(get_db)):
    submission = await submit_contact(db, body.model_dump())
    await db.commit()
    await db.refresh(submission)
    return contact_out(submission)


@sitemap_router.get("/sitemap.xml", include_in_schema=False)
async def sitemap(db: AsyncSession = Depends(get_db)):
    slugs = [p.slug for p in await published_pages(db)]
    xml = build_sitemap(get_settings().public_base_url, slugs)
    return Response(content=xml, media_type="application/xml")
