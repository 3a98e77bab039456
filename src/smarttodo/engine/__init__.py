"""Smart ToDo engine - task store, audit log and query engine."""

from smarttodo.engine.audit import AuditLog
from smarttodo.engine.errors import (
    ConflictError,
    DuplicateTaskId,
    NotFoundError,
    SmartTodoError,
    StoreError,
    StoreTimeout,
    TaskNotFound,
    ValidationError,
)
from smarttodo.engine.ids import IdGenerator, SequentialIdGenerator, new_task_id
from smarttodo.engine.query import QueryEngine
from smarttodo.engine.store import TaskStore

__all__ = [
    "AuditLog",
    "ConflictError",
    "DuplicateTaskId",
    "IdGenerator",
    "NotFoundError",
    "QueryEngine",
    "SequentialIdGenerator",
    "SmartTodoError",
    "StoreError",
    "StoreTimeout",
    "TaskNotFound",
    "TaskStore",
    "ValidationError",
    "new_task_id",
]
