"""
Bounded retry for async RPC calls.

The wrapped coroutine factory receives a ``bail`` callable. Calling
``bail(error)`` aborts immediately and re-raises ``error`` without spending
the remaining attempts.
"""
import asyncio
from collections.abc import Awaitable, Callable
from typing import NoReturn, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")

Bail = Callable[[BaseException], NoReturn]


class _Bailed(Exception):
    def __init__(self, error: BaseException):
        super().__init__(str(error))
        self.error = error


def _bail(error: BaseException) -> NoReturn:
    raise _Bailed(error)


async def retry_async(
    coro_factory: Callable[[Bail], Awaitable[T]],
    attempts: int = 3,
    min_timeout: float = 1.0,
    factor: float = 2.0,
    max_timeout: float = 30.0,
    operation_name: str = "RPC call",
) -> T:
    """
    Run ``coro_factory(bail)`` until it succeeds, bails, or attempts run out.

    Args:
        coro_factory: Called once per attempt with the ``bail`` escape
        attempts: Maximum number of attempts (at least one is made)
        min_timeout: Delay before the second attempt, in seconds
        factor: Multiplier applied to the delay after each failed attempt
        max_timeout: Upper bound for a single delay
        operation_name: Operation name for logging

    Returns:
        Result of the first successful attempt

    Raises:
        The bailed error, or the error from the last attempt
    """
    attempts = max(1, attempts)
    delay = min_timeout

    for attempt in range(1, attempts + 1):
        try:
            return await coro_factory(_bail)
        except _Bailed as bailed:
            logger.debug("Retry aborted", operation=operation_name, error=str(bailed.error))
            raise bailed.error
        except Exception as e:
            if attempt == attempts:
                logger.error(
                    "Retries exhausted",
                    operation=operation_name,
                    attempts=attempts,
                    error=str(e),
                )
                raise
            logger.warning(
                "Retrying after error",
                operation=operation_name,
                attempt=attempt,
                delay=delay,
                error=str(e),
            )
            await asyncio.sleep(delay)
            delay = min(delay * factor, max_timeout)

    raise AssertionError("unreachable")
