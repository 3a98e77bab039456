"""Audit log - append-only history of task lifecycle events."""

import logging
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from smarttodo.db.base import Database
from smarttodo.db.repositories import AuditRepository
from smarttodo.engine.errors import ValidationError
from smarttodo.engine.guard import guarded
from smarttodo.models import AuditAction, AuditEntry
from smarttodo.observability.metrics import metrics
from smarttodo.utils.time import SystemClock

logger = logging.getLogger("smarttodo.audit")


class AuditLog:
    """
    Append-only sink for task lifecycle events.

    Entries are written only by ``TaskStore``, inside the transaction of the
    mutation they describe, so a task change and its entry commit or roll
    back together. Reading history and the retention purge are the only
    other operations.
    """

    def __init__(self, database: Database, clock=None):
        self.database = database
        self.clock = clock or SystemClock()

    async def record(
        self,
        session: AsyncSession,
        task_id: str,
        action: AuditAction,
        changes: str | None = None,
        occurred_at: datetime | None = None,
    ) -> AuditEntry:
        """Append an entry using the caller's open transaction."""
        entry = await AuditRepository(session).append(
            task_id=task_id,
            action=action,
            changes=changes or None,
            occurred_at=occurred_at or self.clock.now(),
        )
        logger.debug(f"Recorded {action.value} for task {task_id}")
        return entry

    async def history(self, task_id: str) -> list[AuditEntry]:
        """All entries for ``task_id``, oldest first. Survives task deletion."""

        async def _run() -> list[AuditEntry]:
            async with self.database.session() as session:
                return await AuditRepository(session).list_for_task(task_id)

        return await guarded(self.database, "history", _run)

    async def purge(self, older_than: timedelta, batch_size: int = 500) -> int:
        """
        Remove entries of completed tasks whose ``updated_at`` is older than
        ``older_than``. Pending tasks keep their history.

        Each batch runs in its own short transaction so concurrent task
        writes wait at most one batch. Returns the number of entries removed.
        """
        if older_than <= timedelta(0):
            raise ValidationError("older_than must be a positive duration", "older_than")
        if batch_size <= 0:
            raise ValidationError("batch_size must be positive", "batch_size")

        cutoff = self.clock.now() - older_than
        total = 0

        while True:

            async def _batch() -> int:
                async with self.database.transaction() as session:
                    return await AuditRepository(session).purge_batch(cutoff, batch_size)

            removed = await guarded(self.database, "purge", _batch)
            total += removed
            if removed < batch_size:
                break

        if total:
            metrics.inc_counter("audit.purged", total)
            logger.info(f"Purged {total} audit entries older than {cutoff.isoformat()}")
        return total
