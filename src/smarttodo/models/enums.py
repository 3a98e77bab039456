"""Smart ToDo enumerations."""

from enum import Enum


class TaskPriority(str, Enum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Ordering weight, higher is more important."""
        return {TaskPriority.LOW: 0, TaskPriority.MEDIUM: 1, TaskPriority.HIGH: 2}[self]


class TaskStatus(str, Enum):
    """Task lifecycle status."""

    PENDING = "pending"
    COMPLETED = "completed"


class AuditAction(str, Enum):
    """Kinds of task lifecycle events."""

    CREATED = "created"
    UPDATED = "updated"
    COMPLETED = "completed"
    REOPENED = "reopened"
    DELETED = "deleted"

    @classmethod
    def for_transition(cls, old: TaskStatus, new: TaskStatus) -> "AuditAction":
        """Return the action recorded for a status change from ``old`` to ``new``."""
        if old != new and new == TaskStatus.COMPLETED:
            return cls.COMPLETED
        if old != new and new == TaskStatus.PENDING:
            return cls.REOPENED
        return cls.UPDATED
