"""Tests for default plan and bootstrap admin seeding."""

from sqlalchemy import func, select

from app.config import get_settings
from app.models.subscription_plan import SubscriptionPlan
from app.models.user import User
from app.services.seed import BOOTSTRAP_ADMIN_EMAIL, seed_database


async def _plan_slugs(db):
    result = await db.execute(select(SubscriptionPlan.slug).order_by(SubscriptionPlan.sort_order))
    return [slug for (slug,) in result.all()]


async def test_seeds_default_plans_once(test_db):
    first = await seed_database(test_db)
    assert first["plans"] == 3
    assert await _plan_slugs(test_db) == ["starter", "professional", "enterprise"]

    second = await seed_database(test_db)
    assert second["plans"] == 0
    count = (await test_db.execute(select(func.count()).select_from(SubscriptionPlan))).scalar_one()
    assert count == 3


async def test_enterprise_plan_unlimited(test_db):
    await seed_database(test_db)
    plan = (await test_db.execute(
        select(SubscriptionPlan).where(SubscriptionPlan.slug == "enterprise")
    )).scalar_one()
    assert plan.project_limit == -1


async def test_existing_plans_untouched(test_db):
    test_db.add(SubscriptionPlan(name="Custom", slug="custom", price=1, project_limit=2))
    await test_db.commit()
    result = await seed_database(test_db)
    assert result["plans"] == 0
    assert await _plan_slugs(test_db) == ["custom"]


async def test_admin_skipped_without_password(test_db, monkeypatch):
    monkeypatch.setattr(get_settings(), "admin_default_password", None)
    result = await seed_database(test_db)
    assert result["admin"] is False
    assert (await test_db.execute(select(User))).first() is None


async def test_admin_skipped_with_short_password(test_db, monkeypatch):
    monkeypatch.setattr(get_settings(), "admin_default_password", "short")
    assert (await seed_database(test_db))["admin"] is False


async def test_admin_created_and_can_log_in(client, test_db, monkeypatch):
    monkeypatch.setattr(get_settings(), "admin_default_password", "bootstrap-secret")
    assert (await seed_database(test_db))["admin"] is True
    admin = (await test_db.execute(
        select(User).where(User.email == BOOTSTRAP_ADMIN_EMAIL)
    )).scalar_one()
    assert admin.role == "admin"
    assert admin.subscription_tier == "enterprise"

    resp = await client.post("/api/v1/auth/login", json={
        "email": BOOTSTRAP_ADMIN_EMAIL, "password": "bootstrap-secret",
    })
    assert resp.status_code == 200
    assert (await seed_database(test_db))["admin"] is False
