"""Set of task ids currently queued or being processed by one worker."""

import asyncio


class InFlightSet:
    """Per-worker de-duplication set guarded by an asyncio lock.

    The lock is held only for the set mutation, never across a queue wait.
    """

    def __init__(self) -> None:
        self._ids: set[str] = set()
        self._lock = asyncio.Lock()

    async def mark(self, task_id: str) -> bool:
        """Add ``task_id``; return False if it was already present."""
        async with self._lock:
            if task_id in self._ids:
                return False
            self._ids.add(task_id)
            return True

    async def discard(self, task_id: str) -> None:
        async with self._lock:
            self._ids.discard(task_id)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)
