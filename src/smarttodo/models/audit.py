"""Audit entry model."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from smarttodo.models.enums import AuditAction


class AuditEntry(BaseModel):
    """Immutable record of a task lifecycle event."""

    id: int
    task_id: str
    action: AuditAction
    changes: Optional[str] = None
    occurred_at: datetime
