"""Tests for project routes — CRUD, plan limits, transfer, tracking verification."""

from sqlalchemy import func, select

from app.infrastructure.page_fetcher import FetchedPage
from app.models.event import Event
from app.models.project import Project
from app.models.subscription_plan import SubscriptionPlan


async def _starter_plan(db, limit=1):
    db.add(SubscriptionPlan(name="Starter", slug="starter", price=5.0, project_limit=limit))
    await db.commit()


async def test_create_and_list(client, user_headers):
    resp = await client.post("/api/v1/projects", headers=user_headers, json={
        "name": "  Blog ", "domain": "blog.example.com",
    })
    assert resp.status_code == 201
    assert resp.json()["name"] == "Blog"
    assert resp.json()["trackingVerified"] is False

    listed = await client.get("/api/v1/projects", headers=user_headers)
    assert [p["name"] for p in listed.json()] == ["Blog"]


async def test_blank_name_rejected(client, user_headers):
    resp = await client.post("/api/v1/projects", headers=user_headers, json={
        "name": "   ", "domain": "x.com",
    })
    assert resp.status_code == 400


async def test_plan_limit_enforced(client, user, user_headers, test_db):
    user.subscription_tier = "starter"
    await test_db.commit()
    await _starter_plan(test_db, limit=1)

    first = await client.post("/api/v1/projects", headers=user_headers, json={
        "name": "One", "domain": "one.com",
    })
    second = await client.post("/api/v1/projects", headers=user_headers, json={
        "name": "Two", "domain": "two.com",
    })
    assert first.status_code == 201
    assert second.status_code == 403
    assert second.json()["error"]["code"] == "PLAN_LIMIT_REACHED"


async def test_admin_exempt_from_plan_limit(client, admin, admin_headers, test_db):
    admin.subscription_tier = "starter"
    await test_db.commit()
    await _starter_plan(test_db, limit=1)
    for name in ("One", "Two"):
        resp = await client.post("/api/v1/projects", headers=admin_headers, json={
            "name": name, "domain": f"{name.lower()}.com",
        })
        assert resp.status_code == 201


async def test_other_users_project_forbidden(client, project, project_url, other_headers):
    assert (await client.get(project_url, headers=other_headers)).status_code == 403
    listed = await client.get("/api/v1/projects", headers=other_headers)
    assert listed.json() == []


async def test_admin_sees_every_project(client, project, admin_headers):
    listed = await client.get("/api/v1/projects", headers=admin_headers)
    assert [p["id"] for p in listed.json()] == [str(project.id)]


async def test_unknown_and_malformed_ids_are_404(client, user_headers):
    missing = await client.get(
        "/api/v1/projects/00000000-0000-0000-0000-000000000000", headers=user_headers,
    )
    malformed = await client.get("/api/v1/projects/not-a-uuid", headers=user_headers)
    assert missing.status_code == malformed.status_code == 404


async def test_patch_only_editable_fields(client, project, project_url, user_headers):
    resp = await client.patch(project_url, headers=user_headers, json={
        "name": "Renamed", "status": "paused", "trackingVerified": True,
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Renamed"
    assert body["status"] == "paused"
    assert body["domain"] == "shop.example.com"
    assert body["trackingVerified"] is False


async def test_delete_cascades_events(client, project, project_url, user_headers, test_db):
    test_db.add(Event(project_id=project.id, event_type="pageview", page="/"))
    await test_db.commit()
    project_id = project.id

    resp = await client.delete(project_url, headers=user_headers)
    assert resp.status_code == 200
    test_db.expire_all()
    gone = (await test_db.execute(select(Project).where(Project.id == project_id))).scalar_one_or_none()
    assert gone is None
    remaining = (await test_db.execute(select(func.count()).select_from(Event))).scalar_one()
    assert remaining == 0


async def test_transfer_to_another_user(client, project, project_url, user_headers, other_user):
    resp = await client.post(f"{project_url}/transfer", headers=user_headers, json={
        "email": other_user.email,
    })
    assert resp.status_code == 200
    assert resp.json()["userId"] == str(other_user.id)


async def test_transfer_to_unknown_user(client, project_url, user_headers):
    resp = await client.post(f"{project_url}/transfer", headers=user_headers, json={
        "email": "nobody@example.com",
    })
    assert resp.status_code == 404


async def test_transfer_to_current_owner(client, project_url, user, user_headers):
    resp = await client.post(f"{project_url}/transfer", headers=user_headers, json={
        "email": user.email,
    })
    assert resp.status_code == 400


async def test_verify_tracking_detects_snippet(client, project, project_url, user_headers, monkeypatch):
    html = (
        '<html><head><script src="https://cdn.example/snippet.js" '
        f'data-project-id="{project.id}"></script></head></html>'
    )

    async def fake_fetch(url):
        return FetchedPage(url=url, status_code=200, html=html)

    monkeypatch.setattr("app.services.tracking_verifier.fetch_page", fake_fetch)
    resp = await client.post(f"{project_url}/verify-tracking", headers=user_headers)
    data = resp.json()
    assert data["verified"] is True
    assert data["hasDataAttribute"] is True
    assert data["checkedUrl"] == "https://shop.example.com"

    fetched = await client.get(project_url, headers=user_headers)
    assert fetched.json()["trackingVerified"] is True
    assert fetched.json()["trackingVerifiedAt"] is not None


async def test_verify_tracking_reports_other_project(client, project_url, user_headers, monkeypatch):
    other_id = "11111111-2222-3333-4444-555555555555"
    html = f'<script src="/snippet.js" data-project-id="{other_id}"></script>'

    async def fake_fetch(url):
        return FetchedPage(url=url, status_code=200, html=html)

    monkeypatch.setattr("app.services.tracking_verifier.fetch_page", fake_fetch)
    resp = await client.post(
        f"{project_url}/verify-tracking", headers=user_headers, json={"url": "www.shop.example.com"},
    )
    data = resp.json()
    assert data["verified"] is False
    assert data["foundOtherProjectId"] == other_id


async def test_verify_tracking_fetch_failure_is_not_an_error(client, project_url, user_headers, monkeypatch):
    async def fake_fetch(url):
        return FetchedPage(url=url, error="Could not connect to the website")

    monkeypatch.setattr("app.services.tracking_verifier.fetch_page", fake_fetch)
    resp = await client.post(f"{project_url}/verify-tracking", headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["verified"] is False
    assert resp.json()["message"] == "Could not connect to the website"


async def test_verify_tracking_rejects_localhost(client, project_url, user_headers):
    resp = await client.post(
        f"{project_url}/verify-tracking", headers=user_headers, json={"url": "http://localhost:3000"},
    )
    assert resp.status_code == 400
