"""Task ID generation strategies."""

from typing import Callable
from uuid import uuid4

IdGenerator = Callable[[], str]

MAX_ID_LENGTH = 255

# Path segments taken by the filter routes under /api/tasks/.
RESERVED_IDS = frozenset({"date-range", "search", "urgent", "overdue", "statistics"})


def new_task_id() -> str:
    """Return a fresh random task ID."""
    return str(uuid4())


class SequentialIdGenerator:
    """Monotonic ``<prefix><n>`` IDs, unique for the generator's lifetime."""

    def __init__(self, prefix: str = "task-", start: int = 1):
        self.prefix = prefix
        self._next = start

    def __call__(self) -> str:
        value = f"{self.prefix}{self._next}"
        self._next += 1
        return value
