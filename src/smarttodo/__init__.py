"""Smart ToDo task-tracking backend."""

__version__ = "0.1.0"
