"""
Retention sweep: purges old history and optionally removes long-completed
tasks; never touches pending work.
"""

import pytest

from smarttodo.tasks import RetentionSweep


@pytest.mark.asyncio
async def test_run_once_purges_history_only_by_default(store, audit, clock, test_settings):
    done = await store.create(title="done")
    await store.complete(done.id)
    pending = await store.create(title="pending")

    clock.advance(days=40)
    result = await RetentionSweep(audit, store, test_settings).run_once()

    assert result == {"audit_entries_purged": 2, "tasks_removed": 0}
    assert len(await store.list()) == 2
    assert len(await audit.history(pending.id)) == 1


@pytest.mark.asyncio
async def test_run_once_removes_completed_tasks_when_configured(store, audit, clock, test_settings):
    test_settings.completed_task_retention_days = 7
    done = await store.create(title="done")
    await store.complete(done.id)
    pending = await store.create(title="pending")

    clock.advance(days=10)
    result = await RetentionSweep(audit, store, test_settings).run_once()

    assert result["tasks_removed"] == 1
    assert [t.id for t in await store.list()] == [pending.id]
    # Deletion is itself recorded.
    assert (await audit.history(done.id))[-1].action.value == "deleted"


@pytest.mark.asyncio
async def test_disabled_sweep_starts_nothing(store, audit, test_settings):
    sweep = RetentionSweep(audit, store, test_settings)
    await sweep.start()
    assert sweep._task is None
    await sweep.stop()


@pytest.mark.asyncio
async def test_sweep_loop_stops_gracefully(store, audit, test_settings):
    test_settings.retention_sweep_interval_seconds = 60
    sweep = RetentionSweep(audit, store, test_settings)
    await sweep.start()
    assert sweep._task is not None

    await sweep.stop()
    assert sweep._task is None
