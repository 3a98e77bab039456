"""
Pytest fixtures for Smart ToDo tests.
"""

import os
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

# Ensure test config is set before importing smarttodo modules.
os.environ.setdefault("SMARTTODO_ENV", "development")
os.environ.setdefault("SMARTTODO_DATABASE_URL", "sqlite+aiosqlite:///./smarttodo_test.db")
os.environ.setdefault("SMARTTODO_RETENTION_SWEEP_INTERVAL_SECONDS", "0")

from smarttodo.config import Settings
from smarttodo.container import build_components
from smarttodo.db.base import Database
from smarttodo.engine import SequentialIdGenerator
from smarttodo.observability.metrics import metrics
from smarttodo.utils.time import FrozenClock

pytest_plugins = ("pytest_asyncio",)

# A Tuesday, mid-morning UTC.
START = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'smarttodo.db'}",
        store_timeout_seconds=5.0,
        retention_sweep_interval_seconds=0,
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture
async def database(test_settings):
    """Fresh SQLite database per test."""
    db = Database.from_settings(test_settings)
    await db.create_schema()
    yield db
    await db.dispose()


@pytest.fixture
def components(test_settings, database, clock):
    metrics.reset()
    return build_components(
        test_settings,
        database=database,
        clock=clock,
        id_generator=SequentialIdGenerator(),
    )


@pytest.fixture
def store(components):
    return components.store


@pytest.fixture
def audit(components):
    return components.audit


@pytest.fixture
def queries(components):
    return components.queries


@pytest.fixture
async def client(components):
    """Async test client with overridden dependencies."""
    from smarttodo.api.deps import get_audit, get_queries, get_store
    from smarttodo.main import app

    app.dependency_overrides[get_store] = lambda: components.store
    app.dependency_overrides[get_queries] = lambda: components.queries
    app.dependency_overrides[get_audit] = lambda: components.audit

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
