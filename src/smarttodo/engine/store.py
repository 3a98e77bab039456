"""Task store - owns task rows and emits their audit entries."""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Mapping

from sqlalchemy.exc import IntegrityError

from smarttodo.db.base import Database
from smarttodo.db.repositories import TaskRepository
from smarttodo.db.tables import TaskTable
from smarttodo.engine.audit import AuditLog
from smarttodo.engine.errors import (
    DuplicateTaskId,
    StoreError,
    TaskNotFound,
    ValidationError,
)
from smarttodo.engine.guard import guarded
from smarttodo.engine.ids import MAX_ID_LENGTH, RESERVED_IDS, IdGenerator, new_task_id
from smarttodo.models import (
    MUTABLE_FIELDS,
    TRACKED_FIELDS,
    AuditAction,
    Task,
    TaskPriority,
    TaskStatus,
)
from smarttodo.observability.metrics import metrics
from smarttodo.utils.time import SystemClock

logger = logging.getLogger("smarttodo.store")

MAX_TITLE_LENGTH = 255
_ID_ATTEMPTS = 5


# =============================================================================
# Field validation
# =============================================================================


def _validate_title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Title is required", "title")
    if len(value) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters", "title")
    return value


def _validate_choice(enum_cls, value: Any, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}': expected one of {allowed}", field)


def _validate_due_date(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        raise ValidationError("due_date must be a calendar date without time", "due_date")
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise ValidationError(f"Invalid due_date '{value}': expected YYYY-MM-DD", "due_date")


def _validate_description(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise ValidationError("description must be a string", "description")


def validate_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize a partial update; only the keys present are returned."""
    unknown = set(changes) - set(MUTABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")

    values: dict[str, Any] = {}
    for field, value in changes.items():
        if field == "title":
            values[field] = _validate_title(value)
        elif field == "priority":
            values[field] = _validate_choice(TaskPriority, value, "priority")
        elif field == "status":
            values[field] = _validate_choice(TaskStatus, value, "status")
        elif field == "due_date":
            values[field] = _validate_due_date(value)
        elif field == "description":
            values[field] = _validate_description(value)
    return values


def describe_changes(before: Task, after: Task) -> str:
    """Field-level diff over the tracked fields, empty when none changed."""
    parts = []
    for field in TRACKED_FIELDS:
        old, new = getattr(before, field), getattr(after, field)
        if old != new:
            old_text = old.value if hasattr(old, "value") else old
            new_text = new.value if hasattr(new, "value") else new
            parts.append(f'{field.capitalize()} changed from "{old_text}" to "{new_text}"; ')
    return "".join(parts)


# =============================================================================
# Store
# =============================================================================


class TaskStore:
    """
    Sole writer of task rows.

    Every mutation runs in one transaction together with its audit entry and
    is bounded by the database timeout. Failures leave both the task table
    and the history untouched.
    """

    def __init__(
        self,
        database: Database,
        audit: AuditLog | None = None,
        id_generator: IdGenerator = new_task_id,
        clock=None,
    ):
        self.database = database
        self.clock = clock or SystemClock()
        self.audit = audit or AuditLog(database, self.clock)
        self.id_generator = id_generator

    def _next_timestamp(self, previous: datetime | None = None) -> datetime:
        """Current time, nudged forward so ``updated_at`` strictly increases."""
        now = self.clock.now()
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        return now

    async def _allocate_id(self, tasks: TaskRepository) -> str:
        for _ in range(_ID_ATTEMPTS):
            candidate = self.id_generator()
            if not await tasks.exists(candidate):
                return candidate
        raise StoreError("Could not allocate a unique task ID")

    # =========================================================================
    # Writes
    # =========================================================================

    async def create(
        self,
        title: str | None,
        description: str | None = None,
        priority: TaskPriority | str | None = None,
        status: TaskStatus | str | None = None,
        due_date: date | str | None = None,
        id: str | None = None,
    ) -> Task:
        """
        Create a task.

        Omitted priority/status default to medium/pending. A caller-supplied
        ``id`` must be unique and usable as a URL path segment; an empty one
        is treated as absent.

        Raises:
            ValidationError: title missing/blank, a field value is invalid, or
                ``id`` is reserved
            DuplicateTaskId: ``id`` already exists
        """
        values = validate_changes(
            {
                "title": title,
                "description": description,
                "priority": priority if priority is not None else TaskPriority.MEDIUM,
                "status": status if status is not None else TaskStatus.PENDING,
                "due_date": due_date,
            }
        )
        if id is not None and not isinstance(id, str):
            raise ValidationError("id must be a string", "id")
        requested_id = id or None
        if requested_id and len(requested_id) > MAX_ID_LENGTH:
            raise ValidationError(f"id must be at most {MAX_ID_LENGTH} characters", "id")
        if requested_id and (requested_id in RESERVED_IDS or "/" in requested_id):
            raise ValidationError(f"id '{requested_id}' is reserved or contains '/'", "id")

        async def _run() -> Task:
            async with self.database.transaction() as session:
                tasks = TaskRepository(session)
                if requested_id:
                    if await tasks.exists(requested_id):
                        raise DuplicateTaskId(requested_id)
                    task_id = requested_id
                else:
                    task_id = await self._allocate_id(tasks)

                now = self._next_timestamp()
                try:
                    row = await tasks.insert(task_id=task_id, now=now, **values)
                except IntegrityError:
                    # Lost a race against a concurrent insert of the same id.
                    raise DuplicateTaskId(task_id)

                task = tasks.to_model(row)
                await self.audit.record(
                    session,
                    task.id,
                    AuditAction.CREATED,
                    f"Title: {task.title}, Priority: {task.priority.value}",
                    occurred_at=now,
                )
                return task

        task = await guarded(self.database, "create", _run)
        metrics.inc_counter("tasks.created")
        logger.info(f"Created task {task.id}")
        return task

    async def update(self, task_id: str, changes: Mapping[str, Any]) -> Task:
        """
        Apply a partial update; fields not in ``changes`` are left untouched.

        The diff is computed against the stored row. When title, status or
        priority change an audit entry is written; its action follows the
        status transition (completed, reopened, otherwise updated).

        Raises:
            ValidationError: a field value is invalid
            TaskNotFound: no task with ``task_id``
        """
        values = validate_changes(changes)

        async def _run() -> tuple[Task, AuditAction | None]:
            async with self.database.transaction() as session:
                tasks = TaskRepository(session)
                row = await self._load_for_write(tasks, task_id)
                before = tasks.to_model(row)

                effective = {k: v for k, v in values.items() if getattr(before, k) != v}
                if not effective:
                    return before, None

                now = self._next_timestamp(before.updated_at)
                effective["updated_at"] = now
                after = tasks.to_model(await tasks.apply(row, effective))

                diff = describe_changes(before, after)
                action = None
                if diff:
                    action = AuditAction.for_transition(before.status, after.status)
                    await self.audit.record(session, task_id, action, diff, occurred_at=now)
                return after, action

        task, action = await guarded(self.database, "update", _run)
        if action is not None:
            metrics.inc_counter(f"tasks.{action.value}")
            logger.info(f"Updated task {task_id} ({action.value})")
        return task

    async def complete(self, task_id: str) -> Task:
        """Mark a task completed. Repeating it records another entry."""
        return await self._set_status(task_id, TaskStatus.COMPLETED, AuditAction.COMPLETED)

    async def reopen(self, task_id: str) -> Task:
        """Mark a task pending again. Repeating it records another entry."""
        return await self._set_status(task_id, TaskStatus.PENDING, AuditAction.REOPENED)

    async def _set_status(self, task_id: str, status: TaskStatus, action: AuditAction) -> Task:
        async def _run() -> Task:
            async with self.database.transaction() as session:
                tasks = TaskRepository(session)
                row = await self._load_for_write(tasks, task_id)
                before = tasks.to_model(row)

                now = self._next_timestamp(before.updated_at)
                after = tasks.to_model(
                    await tasks.apply(row, {"status": status, "updated_at": now})
                )
                await self.audit.record(
                    session, task_id, action, describe_changes(before, after), occurred_at=now
                )
                return after

        task = await guarded(self.database, action.value, _run)
        metrics.inc_counter(f"tasks.{action.value}")
        logger.info(f"Task {task_id} {action.value}")
        return task

    async def delete(self, task_id: str) -> None:
        """
        Delete a task. Its history is kept and gains a ``deleted`` entry.

        Raises:
            TaskNotFound: no task with ``task_id``
        """

        async def _run() -> None:
            async with self.database.transaction() as session:
                tasks = TaskRepository(session)
                row = await self._load_for_write(tasks, task_id)
                now = self._next_timestamp(tasks.to_model(row).updated_at)
                await tasks.delete_row(row)
                await self.audit.record(session, task_id, AuditAction.DELETED, occurred_at=now)

        await guarded(self.database, "delete", _run)
        metrics.inc_counter("tasks.deleted")
        logger.info(f"Deleted task {task_id}")

    async def cleanup_completed(self, older_than: timedelta, batch_size: int = 500) -> int:
        """
        Delete completed tasks not updated within ``older_than``.

        Works in batches, one transaction each; every removed task gets a
        ``deleted`` entry. Pending tasks are never touched.
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
                    tasks = TaskRepository(session)
                    ids = await tasks.completed_before(cutoff, batch_size)
                    for task_id in ids:
                        row = await tasks.get_row(task_id, for_update=True)
                        if row is None:
                            continue
                        now = self._next_timestamp(tasks.to_model(row).updated_at)
                        await tasks.delete_row(row)
                        await self.audit.record(
                            session, task_id, AuditAction.DELETED, occurred_at=now
                        )
                    return len(ids)

            removed = await guarded(self.database, "cleanup_completed", _batch)
            total += removed
            if removed < batch_size:
                break

        if total:
            metrics.inc_counter("tasks.deleted", total)
            logger.info(f"Removed {total} completed tasks last updated before {cutoff.isoformat()}")
        return total

    # =========================================================================
    # Reads
    # =========================================================================

    async def get(self, task_id: str) -> Task:
        """
        Raises:
            TaskNotFound: no task with ``task_id``
        """

        async def _run() -> Task | None:
            async with self.database.session() as session:
                return await TaskRepository(session).get(task_id)

        task = await guarded(self.database, "get", _run)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    async def list(self) -> list[Task]:
        """All tasks, newest first."""

        async def _run() -> list[Task]:
            async with self.database.session() as session:
                return await TaskRepository(session).list_all()

        return await guarded(self.database, "list", _run)

    async def _load_for_write(self, tasks: TaskRepository, task_id: str) -> TaskTable:
        row = await tasks.get_row(task_id, for_update=True)
        if row is None:
            raise TaskNotFound(task_id)
        return row
