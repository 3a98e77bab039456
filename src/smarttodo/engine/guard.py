"""Time bounds and error translation around store operations."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy import exc as sa_exc

from smarttodo.db.base import Database
from smarttodo.engine.errors import SmartTodoError, StoreError, StoreTimeout
from smarttodo.observability.metrics import metrics

logger = logging.getLogger("smarttodo.store")

T = TypeVar("T")


async def guarded(database: Database, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
    """
    Run ``fn`` bounded by the database timeout.

    Domain errors pass through untouched. Timeouts (our own bound or the
    connection pool's) become ``StoreTimeout``; any other persistence
    failure becomes ``StoreError`` with the original chained. The
    transaction opened inside ``fn`` has already rolled back by then.
    """
    try:
        return await asyncio.wait_for(fn(), timeout=database.timeout)
    except SmartTodoError:
        raise
    except (asyncio.TimeoutError, sa_exc.TimeoutError):
        metrics.inc_counter("store.timeouts")
        logger.error(f"Store operation '{operation}' timed out after {database.timeout}s")
        raise StoreTimeout(operation, database.timeout) from None
    except (sa_exc.SQLAlchemyError, OSError) as e:
        metrics.inc_counter("store.errors")
        logger.error(f"Store operation '{operation}' failed: {e}", exc_info=True)
        raise StoreError() from e
