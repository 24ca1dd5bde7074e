"""Retry policy with exponential backoff for durable-store calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from veltis.core.settings import settings
from veltis.services.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-count retry with a base delay that grows by `multiplier` each retry.

    With the defaults the waits between three attempts are 1s and 2s.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    retry_on: tuple[type[BaseException], ...] = (StoreUnavailableError,)

    def delay_for(self, attempt: int) -> float:
        """Return the wait before retry number `attempt` (0-indexed)."""
        return max(0.0, self.base_delay * (self.multiplier**attempt))

    async def run(self, operation: Callable[[], Awaitable[T]], *, label: str = "operation") -> T:
        """Await `operation` until it succeeds or attempts are exhausted.

        The last retryable exception is re-raised once every attempt failed;
        non-retryable exceptions propagate immediately.
        """
        attempts = max(1, self.max_attempts)
        for attempt in range(attempts):
            try:
                return await operation()
            except self.retry_on as err:
                if attempt >= attempts - 1:
                    logger.error("%s failed after %d attempts: %s", label, attempts, err)
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "%s failed (attempt %d/%d): %s; retrying in %.2fs",
                    label,
                    attempt + 1,
                    attempts,
                    err,
                    delay,
                )
                await asyncio.sleep(delay)
        raise RuntimeError("unreachable")  # pragma: no cover


def get_retry_policy() -> RetryPolicy:
    """Return the retry policy configured for durable-store calls."""
    return RetryPolicy(
        max_attempts=settings.store_retry_attempts,
        base_delay=settings.store_retry_base_delay_seconds,
        multiplier=settings.store_retry_multiplier,
    )
