"""Database repositories for Smart ToDo entities."""

from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy import and_, case, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from smarttodo.db.tables import TaskHistoryTable, TaskTable
from smarttodo.models import (
    AuditAction,
    AuditEntry,
    Task,
    TaskPriority,
    TaskStatistics,
    TaskStatus,
)

# high > medium > low when sorting by importance
PRIORITY_RANK = case(
    {
        TaskPriority.HIGH: 2,
        TaskPriority.MEDIUM: 1,
        TaskPriority.LOW: 0,
    },
    value=TaskTable.priority,
    else_=0,
)


def _count_where(condition: ColumnElement[bool]):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


class TaskRepository:
    """Repository for task rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, task_id: str) -> Task | None:
        """Get a task by ID."""
        row = await self.get_row(task_id)
        return self.to_model(row) if row else None

    async def get_row(self, task_id: str, for_update: bool = False) -> TaskTable | None:
        query = select(TaskTable).where(TaskTable.id == task_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def exists(self, task_id: str) -> bool:
        result = await self.session.execute(
            select(func.count()).select_from(TaskTable).where(TaskTable.id == task_id)
        )
        return result.scalar_one() > 0

    async def insert(
        self,
        task_id: str,
        title: str,
        description: str | None,
        priority: TaskPriority,
        status: TaskStatus,
        due_date: date | None,
        now: datetime,
    ) -> TaskTable:
        """Insert a task row and flush so constraint violations surface here."""
        row = TaskTable(
            id=task_id,
            title=title,
            description=description,
            priority=priority,
            status=status,
            due_date=due_date,
            created_at=now,
            updated_at=now,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def apply(self, row: TaskTable, values: dict[str, Any]) -> TaskTable:
        """Write ``values`` onto a loaded row and flush."""
        for field, value in values.items():
            setattr(row, field, value)
        await self.session.flush()
        return row

    async def delete_row(self, row: TaskTable) -> None:
        await self.session.delete(row)
        await self.session.flush()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _select(self, *criteria: ColumnElement[bool], order_by: tuple = ()) -> list[Task]:
        query = select(TaskTable)
        if criteria:
            query = query.where(*criteria)
        query = query.order_by(*order_by)
        result = await self.session.execute(query)
        return [self.to_model(r) for r in result.scalars().all()]

    async def list_all(self) -> list[Task]:
        """All tasks, newest first."""
        return await self._select(order_by=(TaskTable.created_at.desc(), TaskTable.id))

    async def list_by_priority(self, priority: TaskPriority) -> list[Task]:
        return await self._select(
            TaskTable.priority == priority,
            order_by=(TaskTable.created_at.desc(), TaskTable.id),
        )

    async def list_by_status(self, status: TaskStatus) -> list[Task]:
        return await self._select(
            TaskTable.status == status,
            order_by=(TaskTable.created_at.desc(), TaskTable.id),
        )

    async def list_due_between(self, start: date, end: date) -> list[Task]:
        """Tasks with ``start <= due_date <= end``; undated tasks never match."""
        return await self._select(
            TaskTable.due_date.is_not(None),
            TaskTable.due_date >= start,
            TaskTable.due_date <= end,
            order_by=(TaskTable.due_date.asc(), TaskTable.created_at.desc()),
        )

    async def search(self, term: str) -> list[Task]:
        """Case-insensitive literal substring match on title or description."""
        return await self._select(
            or_(
                TaskTable.title.icontains(term, autoescape=True),
                and_(
                    TaskTable.description.is_not(None),
                    TaskTable.description.icontains(term, autoescape=True),
                ),
            ),
            order_by=(TaskTable.created_at.desc(), TaskTable.id),
        )

    async def list_urgent(self, today: date, window_days: int) -> list[Task]:
        """Pending tasks due from today through today + window_days."""
        return await self._select(
            TaskTable.status == TaskStatus.PENDING,
            TaskTable.due_date.is_not(None),
            TaskTable.due_date >= today,
            TaskTable.due_date <= today + timedelta(days=window_days),
            order_by=(
                TaskTable.due_date.asc(),
                PRIORITY_RANK.desc(),
                TaskTable.created_at.desc(),
            ),
        )

    async def list_overdue(self, today: date) -> list[Task]:
        return await self._select(
            TaskTable.status == TaskStatus.PENDING,
            TaskTable.due_date.is_not(None),
            TaskTable.due_date < today,
            order_by=(TaskTable.due_date.asc(), TaskTable.created_at.desc()),
        )

    async def statistics(self, today: date) -> TaskStatistics:
        """Aggregate counts in a single statement (one snapshot)."""
        pending = TaskTable.status == TaskStatus.PENDING
        result = await self.session.execute(
            select(
                func.count().label("total_tasks"),
                _count_where(pending).label("pending_tasks"),
                _count_where(TaskTable.status == TaskStatus.COMPLETED).label("completed_tasks"),
                _count_where(
                    and_(pending, TaskTable.priority == TaskPriority.HIGH)
                ).label("high_priority_pending"),
                _count_where(and_(pending, TaskTable.due_date == today)).label("due_today"),
                _count_where(and_(pending, TaskTable.due_date < today)).label("overdue"),
            ).select_from(TaskTable)
        )
        row = result.one()
        return TaskStatistics(**{key: int(value or 0) for key, value in row._mapping.items()})

    async def completed_before(self, cutoff: datetime, limit: int) -> list[str]:
        """IDs of completed tasks last touched before ``cutoff``."""
        result = await self.session.execute(
            select(TaskTable.id)
            .where(
                TaskTable.status == TaskStatus.COMPLETED,
                TaskTable.updated_at < cutoff,
            )
            .order_by(TaskTable.updated_at.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    def to_model(self, row: TaskTable) -> Task:
        """Convert database row to model."""
        return Task(
            id=row.id,
            title=row.title,
            description=row.description,
            priority=TaskPriority(row.priority),
            status=TaskStatus(row.status),
            due_date=row.due_date,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class AuditRepository:
    """Repository for the append-only task history."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(
        self,
        task_id: str,
        action: AuditAction,
        changes: str | None,
        occurred_at: datetime,
    ) -> AuditEntry:
        row = TaskHistoryTable(
            task_id=task_id,
            action=action,
            changes=changes,
            occurred_at=occurred_at,
        )
        self.session.add(row)
        await self.session.flush()
        return self.to_model(row)

    async def list_for_task(self, task_id: str) -> list[AuditEntry]:
        """History for a task in the order entries were written."""
        result = await self.session.execute(
            select(TaskHistoryTable)
            .where(TaskHistoryTable.task_id == task_id)
            .order_by(TaskHistoryTable.id.asc())
        )
        return [self.to_model(r) for r in result.scalars().all()]

    async def count(self, task_id: str | None = None) -> int:
        query = select(func.count()).select_from(TaskHistoryTable)
        if task_id is not None:
            query = query.where(TaskHistoryTable.task_id == task_id)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def purge_batch(self, cutoff: datetime, limit: int) -> int:
        """
        Delete up to ``limit`` entries belonging to completed tasks whose
        ``updated_at`` predates ``cutoff``. Returns the number deleted.
        """
        ids_query = (
            select(TaskHistoryTable.id)
            .join(TaskTable, TaskTable.id == TaskHistoryTable.task_id)
            .where(
                TaskTable.status == TaskStatus.COMPLETED,
                TaskTable.updated_at < cutoff,
            )
            .order_by(TaskHistoryTable.id.asc())
            .limit(limit)
        )
        ids = list((await self.session.execute(ids_query)).scalars().all())
        if not ids:
            return 0

        await self.session.execute(
            delete(TaskHistoryTable).where(TaskHistoryTable.id.in_(ids))
        )
        return len(ids)

    def to_model(self, row: TaskHistoryTable) -> AuditEntry:
        return AuditEntry(
            id=row.id,
            task_id=row.task_id,
            action=AuditAction(row.action),
            changes=row.changes,
            occurred_at=row.occurred_at,
        )
