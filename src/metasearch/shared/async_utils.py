"""
Async Utilities for provider fan-out.

Provides:
- All-settled join (one failure never cancels siblings)
- Retry with exponential backoff
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from .exceptions import get_retry_delay, is_retryable_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Retry Decorator
# =============================================================================

def async_retry(
    max_attempts: int = 3,
    retryable_check: Callable[[Exception], bool] = is_retryable_error,
    base_delay: float = 0.5,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator for async functions with automatic retry.

    Example:
        @async_retry(max_attempts=3)
        async def fetch_issues(jql: str) -> dict:
            ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not retryable_check(e) or attempt == max_attempts - 1:
                        raise
                    delay = get_retry_delay(attempt, base_delay)
                    logger.warning(
                        f"Retry {attempt + 1}/{max_attempts} for {func.__name__}: "
                        f"{e} (waiting {delay:.1f}s)"
                    )
                    await asyncio.sleep(delay)
            raise RuntimeError("Unexpected retry loop exit")

        return wrapper
    return decorator


# =============================================================================
# Parallel Execution
# =============================================================================

async def gather_settled(*aws: Awaitable[T]) -> list[T | BaseException]:
    """
    Wait for every awaitable to settle, tolerating individual failures.

    Results are returned in argument order; a failed awaitable contributes
    its exception instead of a value. Unlike a TaskGroup, a failure in one
    task never cancels the others.

    Example:
        outcomes = await gather_settled(search_a(), search_b())
        failures = [o for o in outcomes if isinstance(o, BaseException)]
    """
    if not aws:
        return []
    return await asyncio.gather(*aws, return_exceptions=True)

