"""Task store used by the auto-completion worker."""

import logging
from datetime import datetime
from typing import Any, Protocol

from taskapi.core import db_client
from taskapi.core.clock import Clock, format_timestamp, utc_now
from taskapi.core.logging import span
from taskapi.domain.task import OPEN_STATUSES, EligibleTask, Task, TaskStatus


logger = logging.getLogger(__name__)

COLLECTION = "tasks"

# Sorted so the generated filter is stable.
_OPEN_STATUS_VALUES = sorted(status.value for status in OPEN_STATUSES)


class TaskStore(Protocol):
    """Read, scan and conditional-update access to task records."""

    async def scan_eligible(self, cutoff: datetime) -> list[EligibleTask]:
        """Return open tasks created strictly before ``cutoff``, oldest first."""
        ...

    async def fetch_by_id(self, task_id: str) -> Task | None:
        """Return the current task, or None if it does not exist."""
        ...

    async def conditional_complete(self, task_id: str) -> bool:
        """Complete the task only if it is still open.

        Returns False when the task is already completed or gone.
        """
        ...


def record_to_task(record: dict[str, Any]) -> Task:
    """Build a Task from a stored record."""
    return Task.model_validate(record)


def open_tasks_filter(cutoff: datetime) -> str:
    """Build the filter selecting open tasks created before ``cutoff``."""
    status_group = " || ".join(f'status = "{value}"' for value in _OPEN_STATUS_VALUES)
    return f'({status_group}) && created < "{format_timestamp(cutoff)}"'


class SqliteTaskStore:
    """TaskStore over the SQLite record helpers in ``db_client``."""

    def __init__(self, *, clock: Clock = utc_now, batch_limit: int = 500) -> None:
        self._clock = clock
        self._batch_limit = batch_limit

    async def scan_eligible(self, cutoff: datetime) -> list[EligibleTask]:
        with span("task_store.scan_eligible"):
            records = await db_client.list_records(
                collection=COLLECTION,
                per_page=self._batch_limit,
                filter_query=open_tasks_filter(cutoff),
                sort="created ASC",
            )
            return [EligibleTask(id=r["id"], status=r["status"], created=r["created"]) for r in records]

    async def fetch_by_id(self, task_id: str) -> Task | None:
        with span("task_store.fetch_by_id"):
            try:
                record = await db_client.get_record(collection=COLLECTION, record_id=task_id)
            except db_client.RecordNotFoundError:
                return None
            return record_to_task(record)

    async def conditional_complete(self, task_id: str) -> bool:
        with span("task_store.conditional_complete"):
            applied = await db_client.conditional_update(
                collection=COLLECTION,
                record_id=task_id,
                data={"status": TaskStatus.COMPLETED.value, "updated": format_timestamp(self._clock())},
                field="status",
                allowed_values=_OPEN_STATUS_VALUES,
            )
            if applied:
                logger.info("Task auto-completed", extra={"task_id": task_id})
            return applied
