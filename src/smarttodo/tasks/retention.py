"""Retention sweep background task."""

import asyncio
import logging
import random
from datetime import timedelta
from typing import Optional

from smarttodo.config import Settings
from smarttodo.engine import AuditLog, TaskStore

logger = logging.getLogger("smarttodo.retention")


class RetentionSweep:
    """
    Background loop that trims history of long-completed tasks.

    Runs out-of-band from request handling. Each round:
    - purges audit entries of completed tasks older than the retention window
    - when configured, deletes completed tasks untouched for that long

    Work is done in small batches, each its own transaction, so task writes
    never wait on more than one batch. The interval is jittered by ±20%.
    """

    def __init__(self, audit: AuditLog, store: TaskStore, settings: Settings):
        self.audit = audit
        self.store = store
        self.settings = settings
        self._task: Optional[asyncio.Task] = None
        self._shutdown_event: Optional[asyncio.Event] = None

    async def run_once(self) -> dict[str, int]:
        """Run a single retention round and return what was removed."""
        batch_size = self.settings.retention_batch_size
        removed_tasks = 0
        if self.settings.completed_task_retention_days:
            removed_tasks = await self.store.cleanup_completed(
                timedelta(days=self.settings.completed_task_retention_days),
                batch_size=batch_size,
            )
        purged = await self.audit.purge(
            timedelta(days=self.settings.audit_retention_days),
            batch_size=batch_size,
        )
        return {"audit_entries_purged": purged, "tasks_removed": removed_tasks}

    async def _loop(self) -> None:
        base_interval = self.settings.retention_sweep_interval_seconds
        logger.info(f"Retention sweep started (base interval: {base_interval}s with ±20% jitter)")

        while not self._shutdown_event.is_set():
            try:
                result = await self.run_once()
                if any(result.values()):
                    logger.info(f"Retention sweep: {result}")
            except Exception as e:
                logger.error(f"Retention sweep error: {e}", exc_info=True)

            jittered_interval = base_interval * random.uniform(0.8, 1.2)
            try:
                await asyncio.wait_for(self._shutdown_event.wait(), timeout=jittered_interval)
            except asyncio.TimeoutError:
                pass

        logger.info("Retention sweep stopped")

    async def start(self) -> None:
        """Start the loop unless the interval is 0."""
        if self.settings.retention_sweep_interval_seconds <= 0:
            logger.info("Retention sweep disabled")
            return
        self._shutdown_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """Signal the loop and wait up to 10s before cancelling it."""
        if self._shutdown_event:
            self._shutdown_event.set()

        if self._task:
            try:
                await asyncio.wait_for(self._task, timeout=10.0)
            except asyncio.TimeoutError:
                logger.warning("Retention sweep did not stop gracefully, cancelling")
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass

        self._task = None
        self._shutdown_event = None
