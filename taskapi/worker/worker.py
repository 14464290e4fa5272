"""Lifecycle controller for the auto-completion worker."""

import asyncio
import logging
from typing import Any

from taskapi.core import config
from taskapi.core.clock import Clock, utc_now
from taskapi.core.errors import QueueFullError, WorkerStoppedError
from taskapi.modules.tasks.store import TaskStore
from taskapi.worker.in_flight import InFlightSet
from taskapi.worker.processor import CompletionProcessor
from taskapi.worker.queue import CompletionQueue
from taskapi.worker.scanner import EligibilityScanner
from taskapi.worker.stats import WorkerStats


logger = logging.getLogger(__name__)


class TaskWorker:
    """Owns the completion queue, the in-flight set and the stop signal.

    ``start()`` launches the scanner and the processor as two asyncio tasks on
    the running loop. ``stop()`` signals both, waits for the processor to
    drain the queue, then closes it. All state lives on the instance, so
    several workers can run side by side.
    """

    def __init__(
        self,
        store: TaskStore,
        *,
        settings: config.Settings | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._settings = settings or config.settings
        self._store = store
        self._stop = asyncio.Event()
        self._queue = CompletionQueue(self._settings.queue_capacity)
        self._in_flight = InFlightSet()
        self.stats = WorkerStats(clock=clock)

        self.scanner = EligibilityScanner(
            store=store,
            queue=self._queue,
            in_flight=self._in_flight,
            stop=self._stop,
            stats=self.stats,
            settings=self._settings,
            clock=clock,
        )
        self.processor = CompletionProcessor(
            store=store,
            queue=self._queue,
            in_flight=self._in_flight,
            stop=self._stop,
            stats=self.stats,
            settings=self._settings,
        )

        self._tasks: list[asyncio.Task[None]] = []
        self._started = False
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._started and not self._stopped

    @property
    def in_flight(self) -> InFlightSet:
        return self._in_flight

    @property
    def queue(self) -> CompletionQueue:
        return self._queue

    def start(self) -> None:
        """Launch the scanner and processor loops and return immediately.

        Raises:
            RuntimeError: If the worker was already started
        """
        if self._started:
            msg = "Task worker already started"
            raise RuntimeError(msg)
        self._started = True
        self._tasks = [
            asyncio.create_task(self.scanner.run(), name="taskapi-eligibility-scanner"),
            asyncio.create_task(self.processor.run(), name="taskapi-completion-processor"),
        ]
        logger.info(
            "Task worker started",
            extra={
                "queue_capacity": self._queue.capacity,
                "scan_interval_seconds": self._settings.scan_interval_seconds,
            },
        )

    async def stop(self) -> None:
        """Signal shutdown and wait until every queued id has been processed.

        A store call already in progress is allowed to finish. Calling this on
        a worker that is not running does nothing.
        """
        if not self.running:
            return
        self._stopped = True
        logger.info("Stopping task worker", extra={"queued": self._queue.qsize()})

        self._stop.set()
        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        for task, result in zip(self._tasks, results, strict=True):
            if isinstance(result, BaseException):
                logger.error(
                    "Worker loop exited with an error",
                    extra={"loop": task.get_name(), "error": repr(result)},
                )
        self._queue.close()
        logger.info("Task worker stopped")

    async def submit(self, task_id: str, timeout: float | None = None) -> bool:
        """Put a task id straight onto the completion queue.

        Submissions share the in-flight set with the scanner, so an id that is
        already queued or being processed is not queued a second time.

        Args:
            task_id: Task to complete
            timeout: Seconds to wait for queue space, defaults to
                ``submit_timeout_seconds``

        Returns:
            True if the id was queued, False if it was already in flight

        Raises:
            QueueFullError: If the queue stayed full for the whole timeout
            WorkerStoppedError: If the worker has been stopped
        """
        if self._stopped:
            msg = "worker is stopped"
            raise WorkerStoppedError(msg)

        if not await self._in_flight.mark(task_id):
            logger.debug("Task already in flight, submission skipped", extra={"task_id": task_id})
            return False

        wait = timeout if timeout is not None else self._settings.submit_timeout_seconds
        try:
            await self._queue.put(task_id, timeout=wait, stop=self._stop)
        except QueueFullError as e:
            await self._in_flight.discard(task_id)
            self.stats.record_submit_rejected(e)
            logger.warning("Task submission rejected, queue full", extra={"task_id": task_id, "timeout": wait})
            raise
        except WorkerStoppedError:
            await self._in_flight.discard(task_id)
            raise
        return True

    def status(self) -> dict[str, Any]:
        """Return a JSON-serialisable snapshot for health reporting."""
        healthy = self.running and not self.stats.is_degraded
        return {
            "status": "healthy" if healthy else "degraded",
            "running": self.running,
            "queue_size": self._queue.qsize(),
            "queue_capacity": self._queue.capacity,
            "in_flight": len(self._in_flight),
            "stats": self.stats.snapshot(),
        }
