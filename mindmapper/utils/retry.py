"""Async exponential backoff retry decorator for outbound HTTP calls."""

from __future__ import annotations

import asyncio
import functools
import random
from typing import Any, Callable, TypeVar

import httpx

from mindmapper.utils.logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

RETRYABLE_STATUS_CODES: tuple[int, ...] = (429, 502, 503, 504)


def _status_of(exc: Exception) -> int | None:
    response = getattr(exc, "response", None)
    return getattr(response, "status_code", None)


def async_retry(
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    retryable_exceptions: tuple[type[Exception], ...] = (httpx.TransportError, httpx.HTTPStatusError),
    retryable_status_codes: tuple[int, ...] = RETRYABLE_STATUS_CODES,
) -> Callable[[F], F]:
    """Decorator for async functions with exponential backoff + jitter.

    Exceptions carrying an HTTP response are retried only when the status is
    in ``retryable_status_codes``; everything else is re-raised at once.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except retryable_exceptions as exc:
                    status = _status_of(exc)
                    if status is not None and status not in retryable_status_codes:
                        raise
                    if attempt >= max_attempts:
                        raise

                    delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
                    total_delay = delay + random.uniform(0, delay * 0.5)
                    logger.warning(
                        "retry_attempt",
                        func=func.__name__,
                        attempt=attempt,
                        status=status,
                        delay=round(total_delay, 2),
                        error=str(exc),
                    )
                    await asyncio.sleep(total_delay)

            raise RuntimeError(f"{func.__name__} called with max_attempts < 1")

        return wrapper  # type: ignore[return-value]

    return decorator
