"""Smart ToDo engine errors."""


class SmartTodoError(Exception):
    """Base error for Smart ToDo operations."""

    def __init__(self, message: str, code: str = "SMARTTODO_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(SmartTodoError):
    """Malformed or missing input."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, "VALIDATION_ERROR")
        self.field = field


class NotFoundError(SmartTodoError):
    """Referenced entity does not exist."""


class TaskNotFound(NotFoundError):
    """Task does not exist."""

    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}", "TASK_NOT_FOUND")
        self.task_id = task_id


class ConflictError(SmartTodoError):
    """Write collides with existing state."""


class DuplicateTaskId(ConflictError):
    """A task with the requested ID already exists."""

    def __init__(self, task_id: str):
        super().__init__(f"Task already exists: {task_id}", "DUPLICATE_TASK_ID")
        self.task_id = task_id


class StoreError(SmartTodoError):
    """Persistence layer failure."""

    retryable = False

    def __init__(self, message: str = "Storage operation failed", code: str = "STORE_ERROR"):
        super().__init__(message, code)


class StoreTimeout(StoreError):
    """Store operation exceeded its time budget. Safe to retry."""

    retryable = True

    def __init__(self, operation: str, timeout: float):
        super().__init__(
            f"Store operation '{operation}' timed out after {timeout}s",
            "STORE_TIMEOUT",
        )
        self.operation = operation
        self.timeout = timeout
