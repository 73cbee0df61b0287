# src/services/retry.py

"""Bounded exponential backoff with jitter for async operations."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from src.models.errors import RetryExhaustedError

logger = logging.getLogger("hotel_prices.retry")

T = TypeVar("T")

# Module-level so tests can patch the wait out
_sleep = asyncio.sleep

JITTER_RATIO = 0.1


def compute_backoff_delay(
    attempt: int,
    initial_delay: float,
    max_delay: float,
    multiplier: float,
    jitter: bool = True,
) -> float:
    """Delay before retrying after the zero-based *attempt* failed.

    ``min(initial_delay * multiplier**attempt, max_delay)`` plus up to
    10% random jitter on top.
    """
    base = min(initial_delay * multiplier ** attempt, max_delay)
    if not jitter:
        return base
    return base + random.uniform(0, base * JITTER_RATIO)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    multiplier: float = 2.0,
    operation_name: str = "operation",
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> T:
    """Await *operation* until it succeeds or attempts run out.

    Args:
        operation: Zero-argument callable returning a fresh awaitable
            on every call.
        max_attempts: Total attempts including the first (>= 1).
        retry_on: Exception types that count as a failed attempt;
            anything else propagates immediately.

    Raises:
        RetryExhaustedError: Every attempt failed; chained from the
            last error.
        ValueError: ``max_attempts`` is not a positive integer.
    """
    if (
        isinstance(max_attempts, bool)
        or not isinstance(max_attempts, int)
        or max_attempts < 1
    ):
        raise ValueError(
            f"max_attempts must be an integer >= 1, got {max_attempts!r}"
        )

    last_error: BaseException | None = None
    for attempt in range(max_attempts):
        try:
            result = await operation()
        except retry_on as exc:
            last_error = exc
            logger.warning(
                "[%s] Attempt %d/%d failed: %s",
                operation_name,
                attempt + 1,
                max_attempts,
                exc,
            )
            if attempt + 1 >= max_attempts:
                break
            delay = compute_backoff_delay(
                attempt, initial_delay, max_delay, multiplier,
            )
            logger.debug(
                "[%s] Retrying in %.2fs", operation_name, delay,
            )
            await _sleep(delay)
        else:
            logger.debug(
                "[%s] Succeeded on attempt %d/%d",
                operation_name,
                attempt + 1,
                max_attempts,
            )
            return result

    assert last_error is not None
    logger.error(
        "[%s] Giving up after %d attempt(s): %s",
        operation_name,
        max_attempts,
        last_error,
        exc_info=last_error,
    )
    raise RetryExhaustedError(
        operation_name, max_attempts, last_error
    ) from last_error
