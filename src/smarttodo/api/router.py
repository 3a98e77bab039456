"""REST API router."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from smarttodo.api.deps import get_audit, get_queries, get_store
from smarttodo.api.schemas import (
    AuditEntryResponse,
    CreateTaskRequest,
    DeleteTaskResponse,
    HealthResponse,
    MetricsResponse,
    StatisticsResponse,
    TaskResponse,
    UpdateTaskRequest,
)
from smarttodo.engine import (
    AuditLog,
    ConflictError,
    NotFoundError,
    QueryEngine,
    TaskStore,
    ValidationError,
)
from smarttodo.models import TaskPriority, TaskStatus
from smarttodo.observability.metrics import metrics

logger = logging.getLogger("smarttodo.api")

router = APIRouter(prefix="/api")


# ============================================================================
# Health & Metrics
# ============================================================================


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse()


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics():
    """In-process counters and query timings."""
    return MetricsResponse(**metrics.snapshot())


# ============================================================================
# Filters & Search (registered before /tasks/{task_id})
# ============================================================================


@router.get("/tasks/priority/{priority}", response_model=list[TaskResponse])
async def tasks_by_priority(
    priority: TaskPriority,
    queries: QueryEngine = Depends(get_queries),
):
    """Tasks with the given priority, newest first."""
    return await queries.by_priority(priority)


@router.get("/tasks/status/{task_status}", response_model=list[TaskResponse])
async def tasks_by_status(
    task_status: TaskStatus,
    queries: QueryEngine = Depends(get_queries),
):
    """Tasks with the given status, newest first."""
    return await queries.by_status(task_status)


@router.get("/tasks/date-range", response_model=list[TaskResponse])
async def tasks_by_date_range(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    queries: QueryEngine = Depends(get_queries),
):
    """Tasks due between start_date and end_date inclusive."""
    try:
        return await queries.by_date_range(start_date, end_date)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


@router.get("/tasks/search", response_model=list[TaskResponse])
async def search_tasks(
    q: Optional[str] = Query(None),
    queries: QueryEngine = Depends(get_queries),
):
    """Case-insensitive search over title and description."""
    try:
        return await queries.search(q)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


@router.get("/tasks/urgent", response_model=list[TaskResponse])
async def urgent_tasks(queries: QueryEngine = Depends(get_queries)):
    """Pending tasks due within the urgent window."""
    return await queries.urgent()


@router.get("/tasks/overdue", response_model=list[TaskResponse])
async def overdue_tasks(queries: QueryEngine = Depends(get_queries)):
    """Pending tasks past their due date."""
    return await queries.overdue()


@router.get("/tasks/statistics", response_model=StatisticsResponse)
async def task_statistics(queries: QueryEngine = Depends(get_queries)):
    """Aggregate counts over all tasks."""
    return await queries.statistics()


# ============================================================================
# Tasks
# ============================================================================


@router.get("/tasks", response_model=list[TaskResponse])
async def list_tasks(store: TaskStore = Depends(get_store)):
    """List all tasks, newest first."""
    return await store.list()


@router.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    request: CreateTaskRequest,
    store: TaskStore = Depends(get_store),
):
    """Create a new task."""
    try:
        return await store.create(
            title=request.title,
            description=request.description,
            priority=request.priority,
            status=request.status,
            due_date=request.due_date,
            id=request.id,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    store: TaskStore = Depends(get_store),
):
    """Get a task by ID."""
    try:
        return await store.get(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    request: UpdateTaskRequest,
    store: TaskStore = Depends(get_store),
):
    """Update only the fields present in the body."""
    try:
        return await store.update(task_id, request.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.delete("/tasks/{task_id}", response_model=DeleteTaskResponse)
async def delete_task(
    task_id: str,
    store: TaskStore = Depends(get_store),
):
    """Delete a task. Its history is kept."""
    try:
        await store.delete(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    return DeleteTaskResponse(id=task_id)


@router.post("/tasks/{task_id}/complete", response_model=TaskResponse)
async def complete_task(
    task_id: str,
    store: TaskStore = Depends(get_store),
):
    """Mark a task completed."""
    try:
        return await store.complete(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.post("/tasks/{task_id}/reopen", response_model=TaskResponse)
async def reopen_task(
    task_id: str,
    store: TaskStore = Depends(get_store),
):
    """Mark a completed task pending again."""
    try:
        return await store.reopen(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.get("/tasks/{task_id}/history", response_model=list[AuditEntryResponse])
async def task_history(
    task_id: str,
    audit: AuditLog = Depends(get_audit),
):
    """Lifecycle events recorded for a task, oldest first.

    Deleted tasks still have a history; an ID never seen returns an empty list.
    """
    return await audit.history(task_id)
