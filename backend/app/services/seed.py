"""Seed — default subscription plans and the bootstrap admin account.

Invariants:
    - Plans are seeded only when the table is empty (admin edits are never overwritten)
    - The bootstrap admin is created only when ADMIN_DEFAULT_PASSWORD is set and >= 8 chars
    - Idempotent: running twice changes nothing

Usage:
    python -m app.services.seed      (also runs on startup when SEED_ON_STARTUP=true)
"""

import asyncio
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.domain_types import UserRole
from app.infrastructure import database
from app.infrastructure.observability import setup_logging
from app.infrastructure.security import hash_password
from app.models.subscription_plan import SubscriptionPlan
from app.models.user import User

logger = logging.getLogger(__name__)

BOOTSTRAP_ADMIN_EMAIL = "admin@analytics.io"
MIN_ADMIN_PASSWORD_LENGTH = 8

DEFAULT_PLANS = (
    {
        "name": "Starter", "slug": "starter", "price": 5.0, "project_limit": 1, "sort_order": 1,
        "features": [
            "1 Project", "Core Analytics", "Real-time Dashboard",
            "Email Support", "CSV/JSON Export",
        ],
    },
    {
        "name": "Professional", "slug": "professional", "price": 10.0, "project_limit": 4,
        "sort_order": 2,
        "features": [
            "Up to 4 Projects", "Advanced Analytics", "AI Copilot",
            "Custom Reports", "Priority Support",
        ],
    },
    {
        "name": "Enterprise", "slug": "enterprise", "price": 50.0, "project_limit": -1,
        "sort_order": 3,
        "features": [
            "Unlimited Projects", "Full Analytics Suite", "AI Copilot Pro",
            "Dedicated Support", "Custom Integrations",
        ],
    },
)


async def seed_plans(db: AsyncSession) -> int:
    count = (await db.execute(select(func.count()).select_from(SubscriptionPlan))).scalar_one()
    if count:
        return 0
    for plan in DEFAULT_PLANS:
        db.add(SubscriptionPlan(currency="GBP", is_active=True, **plan))
    await db.flush()
    logger.info(f"Seeded {len(DEFAULT_PLANS)} subscription plans")
    return len(DEFAULT_PLANS)


async def seed_admin(db: AsyncSession) -> bool:
    existing = (await db.execute(
        select(User.id).where(User.email == BOOTSTRAP_ADMIN_EMAIL)
    )).first()
    if existing:
        return False
    password = get_settings().admin_default_password
    if not password:
        logger.warning("ADMIN_DEFAULT_PASSWORD not set, skipping admin user creation")
        return False
    if len(password) < MIN_ADMIN_PASSWORD_LENGTH:
        logger.warning("ADMIN_DEFAULT_PASSWORD is shorter than 8 characters, skipping admin user creation")
        return False
    db.add(User(
        username="admin",
        email=BOOTSTRAP_ADMIN_EMAIL,
        password_hash=hash_password(password),
        role=UserRole.ADMIN.value,
        subscription_tier="enterprise",
        subscription_status="active",
    ))
    await db.flush()
    logger.warning(
        f"Default admin created with email {BOOTSTRAP_ADMIN_EMAIL}; change the password after first login",
    )
    return True


async def seed_database(db: AsyncSession) -> dict:
    plans = await seed_plans(db)
    admin = await seed_admin(db)
    await db.commit()
    return {"plans": plans, "admin": admin}


async def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(settings.database_url)
    async with database.db_manager.session() as db:
        result = await seed_database(db)
    await database.db_manager.dispose()
    logger.info(f"Seed complete: {result}")


if __name__ == "__main__":
    asyncio.run(main())
