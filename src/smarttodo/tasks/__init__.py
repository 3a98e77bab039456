"""Smart ToDo background tasks."""

from smarttodo.tasks.retention import RetentionSweep

__all__ = ["RetentionSweep"]
