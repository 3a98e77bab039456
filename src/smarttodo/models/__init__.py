"""Smart ToDo data models."""

from smarttodo.models.enums import AuditAction, TaskPriority, TaskStatus
from smarttodo.models.task import MUTABLE_FIELDS, TRACKED_FIELDS, Task
from smarttodo.models.audit import AuditEntry
from smarttodo.models.statistics import TaskStatistics

__all__ = [
    "AuditAction",
    "AuditEntry",
    "MUTABLE_FIELDS",
    "TRACKED_FIELDS",
    "Task",
    "TaskPriority",
    "TaskStatistics",
    "TaskStatus",
]
