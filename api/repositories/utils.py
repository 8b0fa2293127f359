"""Repository utility functions for common database operations."""

import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from core.logger import get_logger
from services.errors import StoreUnavailableError

logger = get_logger(__name__)

# Threshold for logging slow queries (milliseconds)
SLOW_QUERY_THRESHOLD_MS = 500

# Driver-level failures meaning "the store could not answer", as opposed to
# constraint violations or programming errors which propagate unchanged.
STORE_FAILURES: tuple[type[BaseException], ...] = (
    OperationalError,
    PoolTimeoutError,
    TimeoutError,
    ConnectionError,
)

P = ParamSpec("P")
R = TypeVar("R")


def _is_store_failure(error: BaseException) -> bool:
    if isinstance(error, STORE_FAILURES):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


def log_slow_query(
    operation_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator to log slow repository operations and errors.

    Logs at WARNING level for queries exceeding SLOW_QUERY_THRESHOLD_MS.
    Store failures are logged and re-raised as StoreUnavailableError with the
    original exception chained; anything else is logged and re-raised as is.

    Usage:
        @log_slow_query("find_completions")
        async def find(self, habit_ids: set[int]) -> list[CompletionRecord]:
            ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    "db.query.failed",
                    db_operation=operation_name,
                    db_duration_ms=round(duration_ms, 2),
                    db_error_type=type(e).__name__,
                )
                if _is_store_failure(e):
                    raise StoreUnavailableError(operation_name, e) from e
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            if duration_ms > SLOW_QUERY_THRESHOLD_MS:
                logger.warning(
                    "db.query.slow",
                    db_operation=operation_name,
                    db_duration_ms=round(duration_ms, 2),
                )
            return result

        return wrapper

    return decorator
