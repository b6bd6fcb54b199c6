# tests/conftest.py

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from team_service.cache.layer import CacheLayer
from team_service.core.config import Settings
from team_service.database import Store
from team_service.main import create_app

from .fakes import FakeRedis


def make_settings(**overrides) -> Settings:
    values = {
        "team_name": "alpha",
        "service_name": "api",
        "environment": "test",
        "app_version": "2.0.0",
        "database_url": None,
        "db_host": "localhost",
        "db_name": "hackathon",
        "redis_host": "localhost",
        "cache_default_ttl": 3600,
        "task_list_limit": 100,
    }
    values.update(overrides)
    return Settings(**values)


def make_client(app) -> AsyncClient:
    # Unhandled errors must come back as 500 responses, as they would under uvicorn.
    return AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    )


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
async def store():
    """
    Real SQLAlchemy store on a shared in-memory SQLite database.

    Lifespan events are not run by ASGITransport, so the schema is
    bootstrapped here.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    store = Store(engine)
    await store.ensure_schema()
    yield store
    await store.close()


@pytest.fixture()
async def broken_store():
    """Store whose database can never be opened."""
    engine = create_async_engine("sqlite+aiosqlite:////nonexistent-dir/never/there.sqlite3")
    store = Store(engine)
    yield store
    await store.close()


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
async def cache_layer(settings: Settings, fake_redis: FakeRedis) -> CacheLayer:
    layer = CacheLayer(settings, client=fake_redis)
    await layer.connect()
    return layer


@pytest.fixture()
def app(settings: Settings, store: Store, cache_layer: CacheLayer):
    return create_app(settings, store, cache_layer)


@pytest.fixture()
async def client(app):
    async with make_client(app) as ac:
        yield ac


@pytest.fixture()
async def other_team_client(store: Store, fake_redis: FakeRedis):
    """Client for a second deployment (team "beta") sharing the same tables."""
    beta = make_settings(team_name="beta", service_name="worker")
    layer = CacheLayer(beta, client=fake_redis)
    await layer.connect()
    async with make_client(create_app(beta, store, layer)) as ac:
        yield ac
