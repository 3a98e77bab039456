"""Database connection and session management."""

import asyncio
import time
from contextlib import asynccontextmanager, nullcontext
from datetime import datetime
from typing import Any, AsyncGenerator

from sqlalchemy import DateTime, event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from smarttodo.config import Settings
from smarttodo.observability.metrics import metrics
from smarttodo.utils.time import ensure_utc


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


class UTCDateTime(TypeDecorator):
    """Timestamp stored as UTC and always loaded timezone-aware."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        value = ensure_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        return ensure_utc(value)


def _engine_kwargs(settings: Settings) -> dict[str, Any]:
    if settings.is_sqlite:
        return {"connect_args": {"timeout": settings.db_pool_timeout_seconds}}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout_seconds,
        "connect_args": {"command_timeout": settings.store_timeout_seconds},
    }


def _attach_query_metrics(target_engine: AsyncEngine) -> None:
    """Attach SQLAlchemy event listeners for query metrics."""
    sync_engine = target_engine.sync_engine
    if getattr(sync_engine, "_smarttodo_metrics_attached", False):
        return

    @event.listens_for(sync_engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info["query_start_time"] = time.perf_counter()

    @event.listens_for(sync_engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        start_time = conn.info.pop("query_start_time", None)
        if start_time is None:
            return
        duration_ms = (time.perf_counter() - start_time) * 1000.0
        metrics.inc_counter("db.query.count")
        metrics.observe("db.query.duration_ms", duration_ms)

    sync_engine._smarttodo_metrics_attached = True


class Database:
    """Explicitly owned persistence handle (engine + session factory)."""

    def __init__(self, engine: AsyncEngine, timeout: float = 10.0):
        self.engine = engine
        self.timeout = timeout
        # SQLite admits one writer at a time; in-process writers queue here.
        self.serialize_writes = engine.dialect.name == "sqlite"
        self._write_lock = asyncio.Lock()
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        _attach_query_metrics(engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            **_engine_kwargs(settings),
        )
        return cls(engine, timeout=settings.store_timeout_seconds)

    async def create_schema(self) -> None:
        """Create tables that do not exist yet."""
        import smarttodo.db.tables  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        """Close database connections."""
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Read session; nothing is committed."""
        async with self.session_factory() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Session inside one transaction: commit on success, rollback on error."""
        lock = self._write_lock if self.serialize_writes else nullcontext()
        async with lock:
            async with self.session_factory() as session:
                async with session.begin():
                    yield session
