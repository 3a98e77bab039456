"""Smart ToDo database layer."""

from smarttodo.db.base import Base, Database, UTCDateTime
from smarttodo.db.tables import TaskHistoryTable, TaskTable

__all__ = [
    "Base",
    "Database",
    "TaskHistoryTable",
    "TaskTable",
    "UTCDateTime",
]
