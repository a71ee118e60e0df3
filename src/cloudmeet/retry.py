"""Retry with exponential backoff, for callers of the calendar client.

The calendar client itself never retries. Booking workflows that want to
retry transient upstream failures wrap their calls with retry_async.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from .errors import IntegrationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_async(
    fn: Callable[..., Awaitable[T]],
    *args,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    label: str = "calendar_call",
    **kwargs,
) -> T:
    """Await fn with retries and exponential backoff.

    Retries on transient errors (timeouts, network failures, 429 and 5xx).
    Non-retryable errors (auth, bad request, pagination overrun) are raised
    immediately.
    """
    last_exc = None
    for attempt in range(max_retries + 1):
        try:
            return await fn(*args, **kwargs)
        except Exception as exc:
            last_exc = exc
            if not _is_retryable(exc) or attempt == max_retries:
                raise
            delay = min(base_delay * (2 ** attempt), max_delay)
            logger.warning(
                "%s failed (attempt %d/%d): %s. Retrying in %.1fs",
                label, attempt + 1, max_retries + 1, exc, delay,
            )
            await asyncio.sleep(delay)

    raise last_exc  # type: ignore[misc]


def _is_retryable(exc: Exception) -> bool:
    """Check if an exception is transient and worth retrying."""
    if isinstance(exc, IntegrationError):
        return exc.retryable

    # Generic network errors
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return True

    return False
