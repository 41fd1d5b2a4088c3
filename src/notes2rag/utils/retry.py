"""Retry logic with decorator pattern for async calls."""

import asyncio
import functools
from typing import Awaitable, Callable, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RetryableError(Exception):
    """Error that should trigger a retry."""

    pass


class NonRetryableError(Exception):
    """Error that should NOT trigger a retry (fail immediately)."""

    pass


def with_retry(
    max_retries: int = 1,
    delay_seconds: float = 2.0,
    retryable_exceptions: tuple = (RetryableError,),
):
    """
    Decorator for async retry logic: retry specified times then raise.

    Args:
        max_retries: Maximum number of retry attempts (default: 1)
        delay_seconds: Delay between retries in seconds (default: 2.0)
        retryable_exceptions: Tuple of exception types to retry on

    Usage:
        @with_retry(max_retries=1, delay_seconds=2.0)
        async def fetch_vector(text):
            ...
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            last_exception: Exception | None = None

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except NonRetryableError:
                    # Don't retry, re-raise immediately
                    raise
                except retryable_exceptions as e:
                    last_exception = e

                    if attempt < max_retries:
                        logger.warning(
                            "Attempt failed, retrying",
                            function=func.__name__,
                            attempt=attempt + 1,
                            max_retries=max_retries,
                            error=str(e),
                            delay_seconds=delay_seconds,
                        )
                        await asyncio.sleep(delay_seconds)
                    else:
                        logger.error(
                            "All attempts failed",
                            function=func.__name__,
                            total_attempts=max_retries + 1,
                            error=str(e),
                        )

            # Re-raise the last exception
            raise last_exception

        return wrapper

    return decorator
