"""
Retry with exponential backoff for provider calls.

The policy is an explicit decorator rather than framework magic:

    @retry(max_attempts=3, base_delay=1.0, multiplier=2.0)
    def call(): ...

With the defaults a failing call is attempted three times, sleeping 1s
before the second attempt and 2s before the third. After the last attempt
the original exception propagates unchanged.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Callable, TypeVar

from loglens.core.exceptions import AIServiceError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)


def is_transient(exc: BaseException) -> bool:
    """Transport and service failures are retried; caller bugs are not."""
    return isinstance(exc, AIServiceError)


def retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    multiplier: float = 2.0,
    retryable: Callable[[BaseException], bool] = is_transient,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[[F], F]:
    """
    Build a retry decorator.

    Args:
        max_attempts: Total attempts including the first call
        base_delay: Seconds to wait before the second attempt
        multiplier: Factor applied to the delay after each retry
        retryable: Predicate deciding whether an exception is retried
        sleep: Delay function (injectable for tests)
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay
            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as exc:
                    if not retryable(exc) or attempt >= max_attempts:
                        raise
                    logger.warning(
                        "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                        getattr(func, "__name__", "call"),
                        attempt,
                        max_attempts,
                        exc,
                        delay,
                    )
                    sleep(delay)
                    delay *= multiplier
                    attempt += 1

        return wrapper  # type: ignore[return-value]

    return decorator
