"""
Pytest configuration and fixtures for Flowboard tests.
"""
import os

# Settings are read at import time; point them at SQLite before any flowboard import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import flowboard.models  # noqa: F401  (registers tables on Base.metadata)
from factories import bearer
from flowboard.db.database import Base, get_db
from flowboard.db.seed import seed_catalog, seed_demo_tenant
from flowboard.main import app


# ============================================================
# Database Fixtures
# ============================================================

@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def now():
    return datetime.now(timezone.utc).replace(microsecond=0)


@pytest.fixture
async def catalog(db):
    return await seed_catalog(db)


@pytest.fixture
async def tenant(db, catalog, now):
    """Arabco: 3 meters with 24h of readings every 15 minutes, one OFR line chart."""
    return await seed_demo_tenant(db, catalog, now=now)


# ============================================================
# HTTP Fixtures
# ============================================================

@pytest.fixture
async def client(session_factory):
    """API client whose requests share the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(tenant):
    return bearer(tenant.admin.id, tenant.company.id, "admin")


@pytest.fixture
def user_headers(tenant):
    return bearer(tenant.user.id, tenant.company.id, "user")
