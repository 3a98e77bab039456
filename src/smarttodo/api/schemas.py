"""API request/response schemas."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from smarttodo.models import AuditAction, TaskPriority, TaskStatus


# ============================================================================
# Tasks
# ============================================================================


class CreateTaskRequest(BaseModel):
    """Create task request. ``title`` is checked by the store so a missing
    title reports the same error as a blank one."""

    id: Optional[str] = Field(None, max_length=255, description="Caller-chosen task ID")
    title: Optional[str] = Field(None, description="Task title (required)")
    description: Optional[str] = None
    priority: Optional[TaskPriority] = Field(None, description="low, medium or high")
    status: Optional[TaskStatus] = Field(None, description="pending or completed")
    due_date: Optional[date] = Field(None, description="Calendar date, YYYY-MM-DD")


class UpdateTaskRequest(BaseModel):
    """Partial update. Only fields present in the body are changed; unknown
    fields are ignored."""

    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[date] = None


class TaskResponse(BaseModel):
    """Task response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str]
    priority: TaskPriority
    status: TaskStatus
    due_date: Optional[date]
    created_at: datetime
    updated_at: datetime


class DeleteTaskResponse(BaseModel):
    """Delete confirmation."""

    message: str = "Task deleted successfully"
    id: str


class AuditEntryResponse(BaseModel):
    """Task history entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: str
    action: AuditAction
    changes: Optional[str]
    occurred_at: datetime


class StatisticsResponse(BaseModel):
    """Aggregate task counts."""

    model_config = ConfigDict(from_attributes=True)

    total_tasks: int
    pending_tasks: int
    completed_tasks: int
    high_priority_pending: int
    due_today: int
    overdue: int


# ============================================================================
# Service
# ============================================================================


class HealthResponse(BaseModel):
    """Liveness payload."""

    status: str = "OK"
    message: str = "Server is running"


class MetricsResponse(BaseModel):
    """In-process metrics snapshot."""

    counters: dict[str, int]
    timings: dict[str, dict[str, Any]]
