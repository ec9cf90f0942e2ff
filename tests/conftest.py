"""
Global test configuration and fixtures for the BiteNet admin API

Unit tests run against an in-memory SQLite database (aiosqlite) and an
in-process fake Redis. API tests build the application with a file-backed
SQLite database so it can be seeded before the app's event loop starts.
"""

import asyncio
from typing import AsyncGenerator, Generator

import fakeredis
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from bitenet_admin.core.config import Settings
from bitenet_admin.core.security import encode_password
from bitenet_admin.database import Database
from bitenet_admin.main import create_app
from bitenet_admin.models import SysUser
from bitenet_admin.repositories import SoftDeleteRepository
from bitenet_admin.services.notifications import MockNotificationService

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "123456"


# ============================================================================
# Settings & Services
# ============================================================================

def build_settings(**overrides) -> Settings:
    values = {
        "env_mode": "development",
        "debug": False,
        "database_url": "sqlite+aiosqlite://",
        "redis_url": "redis://localhost:6379/15",
        "const_captcha": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def make_settings():
    """Settings built from explicit values, ignoring any .env file."""
    return build_settings


@pytest.fixture
def notifier() -> MockNotificationService:
    """Mock delivery that never fails and never sleeps."""
    return MockNotificationService(failure_rate=0, min_latency=0, max_latency=0)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    db = Database("sqlite+aiosqlite://", poolclass=StaticPool)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as s:
        yield s


# ============================================================================
# Redis Fixtures
# ============================================================================

@pytest.fixture
def redis_server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest_asyncio.fixture
async def redis_client(redis_server):
    client = fakeredis.FakeAsyncRedis(server=redis_server, decode_responses=True)
    yield client
    await client.aclose()


# ============================================================================
# API Fixtures
# ============================================================================

async def _seed_admin(database_url: str) -> None:
    db = Database(database_url)
    try:
        await db.create_all()
        async with db.session() as s:
            await SoftDeleteRepository(s, SysUser).create(
                name="Admin",
                username=ADMIN_USERNAME,
                password=encode_password(ADMIN_PASSWORD),
                enabled=True,
            )
            await s.commit()
    finally:
        await db.dispose()


@pytest.fixture
def api_settings(tmp_path) -> Settings:
    return build_settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'admin.db'}",
        const_captcha=1,
    )


@pytest.fixture
def sync_redis(redis_server) -> fakeredis.FakeRedis:
    """Synchronous view of the same fake Redis the app uses."""
    return fakeredis.FakeRedis(server=redis_server, decode_responses=True)


@pytest.fixture
def client(api_settings, redis_server, notifier) -> Generator[TestClient, None, None]:
    asyncio.run(_seed_admin(api_settings.database_url))
    app = create_app(
        api_settings,
        redis_client=fakeredis.FakeAsyncRedis(server=redis_server, decode_responses=True),
        notifier=notifier,
    )
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(client: TestClient) -> dict:
    response = client.post(
        "/api/sys-users/auth",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}
