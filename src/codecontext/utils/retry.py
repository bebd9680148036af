"""Bounded retry with exponential backoff for external calls."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from codecontext.errors import ExternalServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

BASE_DELAY = 0.5


async def with_retries(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    description: str,
    base_delay: float = BASE_DELAY,
) -> T:
    """Run `operation`, retrying retryable ExternalServiceErrors.

    Waits base_delay, 2*base_delay, 4*base_delay ... between attempts.
    Non-retryable errors (4xx other than 429) are raised immediately.
    """
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            return await operation()
        except ExternalServiceError as e:
            if not e.retryable or attempt == attempts - 1:
                raise
            delay = base_delay * (2**attempt)
            logger.debug(
                "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                description,
                attempt + 1,
                attempts,
                e,
                delay,
            )
            await asyncio.sleep(delay)
    raise AssertionError("unreachable")
