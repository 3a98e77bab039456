"""Wiring of the persistence handle and the components that share it."""

from dataclasses import dataclass

from smarttodo.config import Settings
from smarttodo.db.base import Database
from smarttodo.engine import AuditLog, IdGenerator, QueryEngine, TaskStore, new_task_id
from smarttodo.utils.time import SystemClock


@dataclass
class Components:
    """Everything a request handler needs, owned by the application lifespan."""

    database: Database
    audit: AuditLog
    store: TaskStore
    queries: QueryEngine


def build_components(
    settings: Settings,
    database: Database | None = None,
    clock=None,
    id_generator: IdGenerator = new_task_id,
) -> Components:
    """Build components around one database handle and one clock."""
    database = database or Database.from_settings(settings)
    clock = clock or SystemClock(settings.timezone)
    audit = AuditLog(database, clock)
    return Components(
        database=database,
        audit=audit,
        store=TaskStore(database, audit=audit, id_generator=id_generator, clock=clock),
        queries=QueryEngine(database, clock=clock, urgent_window_days=settings.urgent_window_days),
    )
