"""Retry decorator with exponential or linear backoff."""
from __future__ import annotations

import functools
import logging
import random
import time
from typing import Any, Callable, Tuple, Type

logger = logging.getLogger(__name__)


def backoff_delay(
    attempt: int,
    *,
    base_delay: float,
    backoff: str = "exponential",
    backoff_factor: float = 2.0,
    max_delay: float = 30.0,
) -> float:
    """Delay before retry number *attempt* (1-based)."""
    if backoff == "linear":
        delay = base_delay * attempt
    else:
        delay = base_delay * (backoff_factor ** (attempt - 1))
    return min(delay, max_delay)


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff: str = "exponential",
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable:
    """Decorator: retries the wrapped function with backoff.

    Exceptions carrying ``retryable = False`` propagate on the first attempt
    even when they match *retryable*.
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            last_exc: BaseException | None = None
            for attempt in range(1, max_attempts + 1):
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    last_exc = exc
                    if getattr(exc, "retryable", True) is False:
                        raise
                    if attempt == max_attempts:
                        logger.error(
                            "%s failed after %d attempts: %s",
                            fn.__qualname__,
                            max_attempts,
                            exc,
                        )
                        raise
                    delay = backoff_delay(
                        attempt,
                        base_delay=base_delay,
                        backoff=backoff,
                        backoff_factor=backoff_factor,
                        max_delay=max_delay,
                    )
                    if jitter:
                        delay *= 0.5 + random.random()
                    logger.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.1fs",
                        fn.__qualname__,
                        attempt,
                        max_attempts,
                        exc,
                        delay,
                    )
                    time.sleep(delay)
            raise last_exc  # type: ignore[misc]

        return wrapper

    return decorator
