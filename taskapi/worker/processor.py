"""Consumer that re-validates queued tasks and completes them."""

import asyncio
import logging
from collections.abc import Awaitable
from enum import StrEnum
from typing import TypeVar

from taskapi.core.config import Settings
from taskapi.core.errors import classify_worker_error
from taskapi.core.logging import log_with_context, span
from taskapi.domain.task import TaskStatus
from taskapi.modules.tasks.store import TaskStore
from taskapi.worker.in_flight import InFlightSet
from taskapi.worker.queue import CompletionQueue
from taskapi.worker.stats import WorkerStats


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProcessOutcome(StrEnum):
    """Result of one processing attempt."""

    COMPLETED = "completed"
    ALREADY_COMPLETED = "already_completed"
    NOT_FOUND = "not_found"
    LOST_RACE = "lost_race"
    FAILED = "failed"


class CompletionProcessor:
    """Drain the completion queue one task id at a time.

    Each id is re-fetched before the write, and the write itself only applies
    while the task is still open, so manual edits racing with the worker are
    never overwritten. The in-flight marker is cleared after every attempt;
    a failed task is rediscovered by a later scan.
    """

    def __init__(
        self,
        *,
        store: TaskStore,
        queue: CompletionQueue,
        in_flight: InFlightSet,
        stop: asyncio.Event,
        stats: WorkerStats,
        settings: Settings,
    ) -> None:
        self._store = store
        self._queue = queue
        self._in_flight = in_flight
        self._stop = stop
        self._stats = stats
        self._settings = settings

    async def run(self) -> None:
        """Process queued ids until stopped, then drain what is left."""
        logger.info("Completion processor started")
        while not self._stop.is_set():
            task_id = await self._queue.get(self._stop)
            if task_id is None:
                break
            await self.process(task_id)

        drained = await self.drain()
        logger.info("Completion processor stopped", extra={"drained": drained})

    async def drain(self) -> int:
        """Process every id currently in the queue without waiting for more."""
        count = 0
        while (task_id := self._queue.get_nowait()) is not None:
            await self.process(task_id)
            count += 1
        return count

    async def _call_store(self, call: Awaitable[T]) -> T:
        return await asyncio.wait_for(call, timeout=self._settings.store_timeout_seconds)

    async def _complete(self, task_id: str) -> ProcessOutcome:
        task = await self._call_store(self._store.fetch_by_id(task_id))
        if task is None:
            return ProcessOutcome.NOT_FOUND
        if task.status == TaskStatus.COMPLETED:
            return ProcessOutcome.ALREADY_COMPLETED

        if not await self._call_store(self._store.conditional_complete(task_id)):
            return ProcessOutcome.LOST_RACE
        return ProcessOutcome.COMPLETED

    async def process(self, task_id: str) -> ProcessOutcome:
        """Attempt to complete one task; never raises for store errors."""
        outcome = ProcessOutcome.FAILED
        error: Exception | None = None
        with span("worker.process"):
            try:
                outcome = await self._complete(task_id)
            except Exception as e:
                error = e
                logger.error(
                    "Auto-completion failed, task left for a later scan",
                    extra={"task_id": task_id, "error": str(e), "error_category": classify_worker_error(e).value},
                )
            finally:
                await self._in_flight.discard(task_id)
                self._stats.record_outcome(outcome, error=error)

        log_with_context(logger, "debug", "Processed task", task_id=task_id, outcome=outcome.value)
        return outcome
