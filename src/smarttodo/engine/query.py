"""Query engine - read-only filters, search and aggregates over tasks."""

import logging
from datetime import date
from typing import Any

from smarttodo.db.base import Database
from smarttodo.db.repositories import TaskRepository
from smarttodo.engine.errors import ValidationError
from smarttodo.engine.guard import guarded
from smarttodo.models import Task, TaskPriority, TaskStatistics, TaskStatus
from smarttodo.utils.time import SystemClock

logger = logging.getLogger("smarttodo.query")


def _parse_date(value: Any, field: str) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise ValidationError(f"Invalid {field} '{value}': expected YYYY-MM-DD", field)


class QueryEngine:
    """
    Read side of the task store. Never mutates state.

    "Today" comes from the injected clock so urgency and overdue checks can
    be evaluated against any calendar day.
    """

    def __init__(self, database: Database, clock=None, urgent_window_days: int = 3):
        self.database = database
        self.clock = clock or SystemClock()
        self.urgent_window_days = urgent_window_days

    async def _read(self, operation: str, fn):
        async def _run():
            async with self.database.session() as session:
                return await fn(TaskRepository(session))

        return await guarded(self.database, operation, _run)

    async def by_id(self, task_id: str) -> Task | None:
        return await self._read("by_id", lambda tasks: tasks.get(task_id))

    async def by_priority(self, priority: TaskPriority | str) -> list[Task]:
        """Exact match, newest first."""
        try:
            value = TaskPriority(priority)
        except ValueError:
            raise ValidationError(f"Invalid priority '{priority}'", "priority")
        return await self._read("by_priority", lambda tasks: tasks.list_by_priority(value))

    async def by_status(self, status: TaskStatus | str) -> list[Task]:
        """Exact match, newest first."""
        try:
            value = TaskStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid status '{status}'", "status")
        return await self._read("by_status", lambda tasks: tasks.list_by_status(value))

    async def by_date_range(self, start: date | str | None, end: date | str | None) -> list[Task]:
        """
        Tasks due within ``[start, end]`` inclusive, earliest due first.
        Undated tasks are excluded.

        Raises:
            ValidationError: a bound is missing or malformed, or start > end
        """
        if start is None or start == "" or end is None or end == "":
            raise ValidationError("Start date and end date are required")
        start_date = _parse_date(start, "start_date")
        end_date = _parse_date(end, "end_date")
        if start_date > end_date:
            raise ValidationError("start_date must not be after end_date", "start_date")
        return await self._read(
            "by_date_range", lambda tasks: tasks.list_due_between(start_date, end_date)
        )

    async def search(self, term: str | None) -> list[Task]:
        """
        Case-insensitive substring match on title or description, newest
        first. An empty term is rejected rather than matching everything.
        """
        if term is None or not isinstance(term, str) or term == "":
            raise ValidationError("Search query is required", "q")
        return await self._read("search", lambda tasks: tasks.search(term))

    async def urgent(self) -> list[Task]:
        """
        Pending tasks due between today and today + the urgent window
        inclusive, earliest due first, then high > medium > low. Tasks
        already past due are reported by ``overdue`` instead.
        """
        today = self.clock.today()
        return await self._read(
            "urgent", lambda tasks: tasks.list_urgent(today, self.urgent_window_days)
        )

    async def overdue(self) -> list[Task]:
        """Pending tasks due before today, earliest due first."""
        today = self.clock.today()
        return await self._read("overdue", lambda tasks: tasks.list_overdue(today))

    async def statistics(self) -> TaskStatistics:
        """Counts from a single aggregate statement, never cached."""
        today = self.clock.today()
        stats = await self._read("statistics", lambda tasks: tasks.statistics(today))
        logger.debug(f"Statistics for {today.isoformat()}: {stats.model_dump()}")
        return stats
