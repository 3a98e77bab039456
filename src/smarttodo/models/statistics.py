"""Aggregate task counts."""

from pydantic import BaseModel


class TaskStatistics(BaseModel):
    """Counts computed from one snapshot of the store."""

    total_tasks: int = 0
    pending_tasks: int = 0
    completed_tasks: int = 0
    high_priority_pending: int = 0
    due_today: int = 0
    overdue: int = 0
