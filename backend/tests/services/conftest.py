"""Service test fixtures — async DB, FastAPI test client and authenticated callers.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched for code paths that open their own session
    - get_ai_client overridden with MockAnthropicClient; tests opt out to check 503
    - Tracking code cache cleared around every test

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (ADR: PostgreSQL-specific features not exercised here)
    - Users are inserted directly and given real JWTs: routes run the full
      bearer dependency chain
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.db.base import Base
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.infrastructure.security import create_access_token, hash_password
from app.models.project import Project
from app.models.user import User
from app.services import tracking_code_cache
from app.services.ai_insights import get_ai_client
import app.infrastructure.database as db_module
from app.main import app
from tests.services.mock_anthropic import MockAnthropicClient

TEST_PASSWORD = "correct-horse"


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def mock_ai():
    return MockAnthropicClient()


@pytest.fixture(autouse=True)
def _fresh_tracking_cache():
    tracking_code_cache.invalidate()
    yield
    tracking_code_cache.invalidate()


@pytest.fixture
async def client(test_engine, test_session_factory, mock_ai):
    """FastAPI test client with DB and AI dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_client] = lambda: mock_ai

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


async def _insert_user(db, email: str, role: str, **fields) -> User:
    user = User(
        username=email.split("@")[0],
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        **fields,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role)}"}


@pytest.fixture
async def user(test_db):
    return await _insert_user(test_db, "owner@example.com", "user")


@pytest.fixture
async def other_user(test_db):
    return await _insert_user(test_db, "stranger@example.com", "user")


@pytest.fixture
async def admin(test_db):
    return await _insert_user(test_db, "admin@example.com", "admin")


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def other_headers(other_user):
    return auth_headers(other_user)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
async def project(test_db, user):
    project = Project(user_id=user.id, name="Shop", domain="shop.example.com")
    test_db.add(project)
    await test_db.commit()
    await test_db.refresh(project)
    return project


@pytest.fixture
def project_url(project):
    return f"/api/v1/projects/{project.id}"
