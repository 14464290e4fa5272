"""Periodic discovery of tasks due for auto-completion."""

import asyncio
import logging
from datetime import timedelta

from taskapi.core.clock import Clock
from taskapi.core.config import Settings
from taskapi.core.errors import QueueFullError, WorkerStoppedError, classify_worker_error
from taskapi.core.logging import span
from taskapi.modules.tasks.store import TaskStore
from taskapi.worker.in_flight import InFlightSet
from taskapi.worker.queue import CompletionQueue
from taskapi.worker.stats import WorkerStats


logger = logging.getLogger(__name__)


class EligibilityScanner:
    """Scan the store on a fixed interval and enqueue each eligible task once.

    A task is eligible when it is still open and was created more than
    ``auto_complete_minutes`` before the scan. Store failures skip the tick;
    the loop only exits on the stop signal.
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
        clock: Clock,
    ) -> None:
        self._store = store
        self._queue = queue
        self._in_flight = in_flight
        self._stop = stop
        self._stats = stats
        self._settings = settings
        self._clock = clock

    async def run(self) -> None:
        """Scan every interval until the stop signal is set."""
        logger.info(
            "Eligibility scanner started",
            extra={
                "interval_seconds": self._settings.scan_interval_seconds,
                "auto_complete_minutes": self._settings.auto_complete_minutes,
            },
        )
        if self._settings.scan_on_start and not self._stop.is_set():
            await self.scan_once()

        while not self._stop.is_set():
            if await self._wait_for_stop(self._settings.scan_interval_seconds):
                break
            await self.scan_once()

        logger.info("Eligibility scanner stopped")

    async def _wait_for_stop(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True if stopped meanwhile."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    async def scan_once(self) -> int:
        """Run one tick: find eligible tasks and enqueue the new ones.

        Returns:
            Number of task ids enqueued
        """
        with span("worker.scan"):
            cutoff = self._clock() - timedelta(minutes=self._settings.auto_complete_minutes)
            try:
                candidates = await asyncio.wait_for(
                    self._store.scan_eligible(cutoff),
                    timeout=self._settings.store_timeout_seconds,
                )
            except Exception as e:
                consecutive = self._stats.record_scan_failure(e)
                logger.error(
                    "Eligibility scan failed, skipping tick",
                    extra={
                        "error": str(e),
                        "error_category": classify_worker_error(e).value,
                        "consecutive_failures": consecutive,
                    },
                )
                return 0

            enqueued = 0
            evicted = 0
            for candidate in candidates:
                if self._stop.is_set():
                    break
                if not await self._in_flight.mark(candidate.id):
                    continue

                try:
                    await self._queue.put(
                        candidate.id,
                        timeout=self._settings.scan_enqueue_timeout_seconds,
                        stop=self._stop,
                    )
                except QueueFullError:
                    # Give the task back so the next scan can pick it up.
                    await self._in_flight.discard(candidate.id)
                    evicted += 1
                    logger.warning("Completion queue full, task deferred", extra={"task_id": candidate.id})
                    continue
                except WorkerStoppedError:
                    await self._in_flight.discard(candidate.id)
                    break
                enqueued += 1

            self._stats.record_scan_success(candidates=len(candidates), enqueued=enqueued, evicted=evicted)
            if candidates:
                logger.info(
                    "Eligibility scan finished",
                    extra={"candidates": len(candidates), "enqueued": enqueued, "evicted": evicted},
                )
            return enqueued
