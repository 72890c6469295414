"""Retry helper for transient store failures."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from selectify.domain.errors import StoreUnavailable

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry an idempotent store call with linear backoff."""

    attempts: int = 3
    backoff_seconds: float = 0.5

    async def call(
        self, operation: Callable[[], Awaitable[T]], *, description: str
    ) -> T:
        """Await ``operation`` until it succeeds or attempts run out."""
        attempts = max(1, self.attempts)
        for attempt in range(1, attempts + 1):
            try:
                return await operation()
            except StoreUnavailable:
                if attempt >= attempts:
                    raise
                logger.warning(
                    "Store call failed, retrying",
                    extra={"operation": description, "attempt": attempt},
                )
                await asyncio.sleep(self.backoff_seconds * attempt)
        raise AssertionError("unreachable")
