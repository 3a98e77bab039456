"""
Store operations are bounded in time and never leak driver errors.
"""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from smarttodo.engine import StoreError, StoreTimeout, TaskNotFound
from smarttodo.engine.guard import guarded
from smarttodo.observability.metrics import metrics


@pytest.mark.asyncio
async def test_slow_operation_times_out(database, monkeypatch):
    monkeypatch.setattr(database, "timeout", 0.05)

    async def slow():
        await asyncio.sleep(1)

    with pytest.raises(StoreTimeout) as exc_info:
        await guarded(database, "slow", slow)

    assert exc_info.value.retryable is True
    assert metrics.counter("store.timeouts") >= 1


@pytest.mark.asyncio
async def test_driver_error_becomes_store_error(database):
    async def broken():
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    with pytest.raises(StoreError) as exc_info:
        await guarded(database, "broken", broken)

    assert exc_info.value.retryable is False
    assert "disk I/O" not in exc_info.value.message
    assert isinstance(exc_info.value.__cause__, OperationalError)


@pytest.mark.asyncio
async def test_domain_errors_pass_through(database):
    async def missing():
        raise TaskNotFound("nope")

    with pytest.raises(TaskNotFound):
        await guarded(database, "missing", missing)


@pytest.mark.asyncio
async def test_store_stays_usable_after_timeout(store, database, monkeypatch):
    async def slow_list_all(self):
        await asyncio.sleep(1)

    from smarttodo.db.repositories import TaskRepository

    monkeypatch.setattr(database, "timeout", 0.05)
    monkeypatch.setattr(TaskRepository, "list_all", slow_list_all)
    with pytest.raises(StoreTimeout):
        await store.list()

    monkeypatch.undo()
    task = await store.create(title="after the timeout")
    assert [t.id for t in await store.list()] == [task.id]
