"""Test fixtures for the task tracker: in-memory SQLite store and ASGI client."""

from __future__ import annotations

from typing import Any, Callable, Sequence

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from task_tracker.app import app
from task_tracker.deps import get_store
from task_tracker.store import SqlStoreClient, StoreError
from task_tracker.store.base import Filter
from task_tracker.store.sql import Base

SAMPLE_APPLICATION_ID = "A1"
SAMPLE_TENANT_ID = "T1"


class FlakyStore:
    """Wraps a real store; individual operations can be switched to fail."""

    def __init__(self, inner):
        self.inner = inner
        self.fail_select = False
        self.fail_select_one = False
        self.fail_insert = False
        self.fail_update = False
        self.on_update: Callable[[dict[str, Any], Sequence[Filter]], None] | None = None
        self.update_calls = 0

    async def select(self, table, columns="*", *, filters=(), order=None):
        if self.fail_select:
            raise StoreError("connection refused")
        return await self.inner.select(table, columns, filters=filters, order=order)

    async def select_one(self, table, columns="*", *, filters=()):
        if self.fail_select_one:
            raise StoreError("connection reset by peer")
        return await self.inner.select_one(table, columns, filters=filters)

    async def insert(self, table, values):
        if self.fail_insert:
            raise StoreError('new row for relation "tasks" violates check constraint')
        return await self.inner.insert(table, values)

    async def update(self, table, values, *, filters):
        self.update_calls += 1
        if self.on_update:
            self.on_update(values, filters)
        if self.fail_update:
            raise StoreError("permission denied for table tasks")
        return await self.inner.update(table, values, filters=filters)

    async def aclose(self):
        await self.inner.aclose()


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def sql_store(engine) -> SqlStoreClient:
    return SqlStoreClient.from_engine(engine)


@pytest_asyncio.fixture
async def store(sql_store) -> FlakyStore:
    return FlakyStore(sql_store)


@pytest_asyncio.fixture
async def application(sql_store) -> dict[str, Any]:
    return await sql_store.insert("applications", {
        "id": SAMPLE_APPLICATION_ID,
        "tenant_id": SAMPLE_TENANT_ID,
        "candidate_name": "Jane Doe",
    })


@pytest_asyncio.fixture
async def client(store):
    """HTTPX async test client against the tracker app."""
    app.dependency_overrides[get_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def tenant_scope(monkeypatch):
    from task_tracker.config import settings

    monkeypatch.setattr(settings, "enforce_tenant_scope", True)
    return settings.tenant_header
