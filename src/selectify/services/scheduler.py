"""Cooperative scheduling for recurring background jobs."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

logger = logging.getLogger(__name__)


class Schedule(Protocol):
    """Computes when a job should run next."""

    def next_run(self, now: datetime) -> datetime:
        """Return the next due time strictly after ``now``."""


@dataclass(frozen=True)
class DailyAt:
    """Runs once a day at a fixed UTC wall-clock time."""

    hour: int
    minute: int = 0

    def next_run(self, now: datetime) -> datetime:
        """Return the next occurrence of hour:minute after ``now``."""
        current = now.astimezone(UTC)
        candidate = current.replace(
            hour=self.hour, minute=self.minute, second=0, microsecond=0
        )
        if candidate <= current:
            candidate += timedelta(days=1)
        return candidate


@dataclass(frozen=True)
class Every:
    """Runs at a fixed interval."""

    seconds: float

    def next_run(self, now: datetime) -> datetime:
        """Return ``now`` plus the interval."""
        return now + timedelta(seconds=max(1.0, self.seconds))


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class RecurringJob:
    """Runs an async action on a schedule until shutdown.

    The next due time is computed after the action finishes, so two runs of
    the same job never overlap.
    """

    name: str
    action: Callable[[], Awaitable[object]]
    schedule: Schedule
    clock: Callable[[], datetime] = _utcnow

    async def run_forever(self, shutdown_event: asyncio.Event) -> None:
        """Execute the action at each due time until ``shutdown_event`` is set."""
        while not shutdown_event.is_set():
            now = self.clock()
            delay = (self.schedule.next_run(now) - now).total_seconds()
            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=max(0.0, delay))
            except TimeoutError:
                await self.run_once()
            else:
                return

    async def run_once(self) -> None:
        """Execute the action once, logging failures."""
        try:
            result = await self.action()
        except Exception:
            logger.exception("Scheduled job failed", extra={"job": self.name})
        else:
            logger.info(
                "Scheduled job completed",
                extra={"job": self.name, "result": str(result)},
            )
