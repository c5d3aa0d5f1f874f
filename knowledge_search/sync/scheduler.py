"""Periodic trigger for sync jobs."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

from knowledge_search.logging_config import get_logger
from knowledge_search.sync.orchestrator import SyncOrchestrator

logger = get_logger(__name__)

Job = Callable[[], Awaitable[Any]]


class ScheduledTrigger:
    """Runs a job every ``interval_seconds`` on the running event loop.

    Errors raised by the job are logged and never escape ``fire()``.
    """

    def __init__(
        self,
        job: Job,
        interval_seconds: float,
        name: str = "scheduled-job",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._job = job
        self.interval_seconds = interval_seconds
        self.name = name
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def fire(self) -> None:
        """Run the job once."""
        start_time = time.perf_counter()
        try:
            outcome = await self._job()
        except Exception as e:
            logger.exception(
                f"Scheduled job {self.name} failed: {e}",
                extra={"job": self.name},
            )
            return

        logger.info(
            f"Scheduled job {self.name} finished",
            extra={
                "job": self.name,
                "duration_seconds": round(time.perf_counter() - start_time, 3),
                "outcome": repr(outcome),
            },
        )

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.fire()

    def start(self) -> None:
        """Start firing periodically. Calling it again while running is a no-op."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.info(
            f"Started scheduled job {self.name}",
            extra={"interval_seconds": self.interval_seconds},
        )

    async def stop(self) -> None:
        """Cancel the schedule and wait for the current run to unwind."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info(f"Stopped scheduled job {self.name}")


def embed_pending_trigger(
    orchestrator: SyncOrchestrator,
    batch_size: int,
    interval_seconds: float,
) -> ScheduledTrigger:
    """Trigger that embeds one batch of pending documents per interval."""

    async def job() -> Any:
        return await orchestrator.embed_pending(batch_size)

    return ScheduledTrigger(job, interval_seconds, name="embed-pending")
