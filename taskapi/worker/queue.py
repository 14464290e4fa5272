"""Bounded FIFO of task ids feeding the completion processor."""

import asyncio
import logging

from taskapi.core.errors import QueueFullError, WorkerStoppedError


logger = logging.getLogger(__name__)


async def _race(operation: asyncio.Task, stop: asyncio.Event | None, timeout: float | None) -> bool:
    """Wait for ``operation``, the stop signal or the timeout, whichever comes first.

    Returns True if ``operation`` finished. Otherwise it is cancelled and
    False is returned.
    """
    waiters: set[asyncio.Task] = {operation}
    stop_waiter = None
    if stop is not None:
        stop_waiter = asyncio.ensure_future(stop.wait())
        waiters.add(stop_waiter)

    try:
        done, pending = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        for waiter in waiters:
            waiter.cancel()
        raise

    for waiter in pending:
        waiter.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
    return operation in done


class CompletionQueue:
    """Bounded queue of task ids with stop-aware put and get.

    Holds ids only; duplicates are not suppressed here. Blocked puts are
    served in arrival order, and a put that finds space never overtakes one
    that is already waiting.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            msg = f"Queue capacity must be at least 1, got {capacity}"
            raise ValueError(msg)
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=capacity)
        self._capacity = capacity
        self._closed = False
        self._waiting = 0
        self._put_lock = asyncio.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    async def put(self, task_id: str, *, timeout: float, stop: asyncio.Event | None = None) -> None:
        """Enqueue a task id, waiting at most ``timeout`` seconds for space.

        Raises:
            QueueFullError: If the queue stayed full for the whole timeout
            WorkerStoppedError: If the queue is closed or ``stop`` is set
        """
        if self._closed or (stop is not None and stop.is_set()):
            msg = "worker is stopped"
            raise WorkerStoppedError(msg)

        if self._waiting == 0:
            try:
                self._queue.put_nowait(task_id)
                return
            except asyncio.QueueFull:
                pass

        self._waiting += 1
        try:
            put = asyncio.ensure_future(self._locked_put(task_id))
            if await _race(put, stop, timeout):
                return
        finally:
            self._waiting -= 1

        if stop is not None and stop.is_set():
            msg = "worker is stopped"
            raise WorkerStoppedError(msg)
        logger.debug("Enqueue timed out", extra={"task_id": task_id, "timeout": timeout})
        raise QueueFullError

    async def _locked_put(self, task_id: str) -> None:
        # asyncio.Lock wakes waiters in FIFO order; only the head of the line
        # may wait on the underlying queue.
        async with self._put_lock:
            await self._queue.put(task_id)

    async def get(self, stop: asyncio.Event) -> str | None:
        """Return the next task id, or None once ``stop`` is set."""
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            pass

        if stop.is_set():
            return None

        get = asyncio.ensure_future(self._queue.get())
        if await _race(get, stop, None):
            return get.result()
        return None

    def get_nowait(self) -> str | None:
        """Return the next task id without waiting, or None if the queue is empty."""
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def close(self) -> None:
        """Reject any further puts."""
        self._closed = True
