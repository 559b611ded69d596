"""Site Administration — user removal, the singleton site settings row and CMS lookups.

Invariants:
    - Deleting a user removes their projects (with every project-scoped row),
      usage logs, invoices, Stripe customer link and reset tokens
    - An admin can never delete their own account
    - Exactly one site_settings row exists once anyone has read it
    - A contact submission is stored even when the notification email cannot be sent
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AnalyticsError, ValidationFailedError
from app.infrastructure.mailer import contact_notification_email, send_email
from app.models.ai_usage_log import AIUsageLog
from app.models.billing import Invoice, StripeCustomer
from app.models.cms import CmsPage, ContactSubmission, SiteSettings
from app.models.project import Project
from app.models.user import PasswordReset, User
from app.services.projects import delete_project

logger = logging.getLogger(__name__)

PUBLISHED = "published"
USER_SCOPED_MODELS = (AIUsageLog, Invoice, StripeCustomer, PasswordReset)


async def delete_user(db: AsyncSession, user: User, actor: User) -> None:
    if user.id == actor.id:
        raise ValidationFailedError("You cannot delete your own account")
    projects = (await db.execute(
        select(Project).where(Project.user_id == user.id)
    )).scalars().all()
    for project in projects:
        await delete_project(db, project)
    for model in USER_SCOPED_MODELS:
        await db.execute(delete(model).where(model.user_id == user.id))
    await db.delete(user)
    logger.info(
        f"User deleted with {len(projects)} project(s)",
        extra={"user_id": str(user.id)},
    )


async def get_site_settings(db: AsyncSession) -> SiteSettings:
    """The settings row, created with defaults on first read. Caller commits."""
    row = (await db.execute(select(SiteSettings).limit(1))).scalar_one_or_none()
    if row is None:
        row = SiteSettings()
        db.add(row)
        await db.flush()
    return row


async def published_pages(db: AsyncSession) -> list[CmsPage]:
    result = await db.execute(
        select(CmsPage)
        .where(CmsPage.status == PUBLISHED)
        .order_by(CmsPage.sort_order, CmsPage.title)
    )
    return list(result.scalars().all())


async def slug_taken(db: AsyncSession, slug: str, exclude_id=None) -> bool:
    query = select(CmsPage.id).where(CmsPage.slug == slug)
    if exclude_id is not None:
        query = query.where(CmsPage.id != exclude_id)
    return (await db.execute(query)).first() is not None


async def submit_contact(db: AsyncSession, fields: dict) -> ContactSubmission:
    """Store a contact form message and notify the site contact address. Caller commits."""
    submission = ContactSubmission(**fields)
    db.add(submission)
    await db.flush()

    settings_row = (await db.execute(select(SiteSettings).limit(1))).scalar_one_or_none()
    notify_to = settings_row.contact_email if settings_row else None
    if notify_to:
        subject, body = contact_notification_email(
            submission.name, submission.email, submission.subject, submission.message,
        )
        try:
            await send_email(notify_to, subject, body)
        except AnalyticsError as e:
            logger.warning(f"Contact notification not sent: {e.message}", extra={"error_code": e.code})
    return submission
