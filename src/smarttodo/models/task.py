"""Task model - the central entity."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel

from smarttodo.models.enums import TaskPriority, TaskStatus


class Task(BaseModel):
    """A to-do item."""

    id: str
    title: str
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    due_date: Optional[date] = None

    # Timestamps
    created_at: datetime
    updated_at: datetime

    def is_pending(self) -> bool:
        return self.status == TaskStatus.PENDING


# Fields compared when building an audit diff, in reporting order.
TRACKED_FIELDS = ("title", "status", "priority")

# Fields a caller may change through a partial update.
MUTABLE_FIELDS = ("title", "description", "priority", "status", "due_date")
