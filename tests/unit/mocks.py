"""Pure Python in-memory collaborators for unit testing."""

import asyncio
import copy
import json
import time
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

import pytest

from taskapi.core.clock import Clock
from taskapi.core.db_client import _COMPARISON_RE, DatabaseError, RecordNotFoundError, _split_top_level
from taskapi.domain.task import OPEN_STATUSES, EligibleTask, Task, TaskStatus


class InMemoryDBClient:
    """Pure Python in-memory database for unit testing.

    Mirrors the record helpers in ``taskapi.core.db_client`` closely enough
    for the task service and the SQLite task store to run against it:
    CRUD, conditional updates, filter strings and "field ASC|DESC" sorting.
    """

    def __init__(self):
        """Initialize empty in-memory database."""
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.fail_with: Exception | None = None

    def _check_failure(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def create_record(self, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Create a new record; the caller supplies the id."""
        self._check_failure()
        if "id" not in data:
            raise ValueError("Record data must include an id")

        records = self._collections.setdefault(collection, {})
        if data["id"] in records:
            raise DatabaseError(f"Failed to create record in {collection}: UNIQUE constraint failed")

        records[data["id"]] = dict(data)
        return copy.deepcopy(records[data["id"]])

    async def get_record(self, collection: str, record_id: str) -> dict[str, Any]:
        """Get a record by ID, raising RecordNotFoundError if missing."""
        self._check_failure()
        record = self._collections.get(collection, {}).get(record_id)
        if record is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        return copy.deepcopy(record)

    async def update_record(self, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Update an existing record."""
        self._check_failure()
        record = self._collections.get(collection, {}).get(record_id)
        if record is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        record.update(data)
        return copy.deepcopy(record)

    async def conditional_update(
        self,
        collection: str,
        record_id: str,
        data: dict[str, Any],
        field: str,
        allowed_values: list[str],
    ) -> bool:
        """Update a record only while ``field`` holds one of ``allowed_values``."""
        self._check_failure()
        record = self._collections.get(collection, {}).get(record_id)
        if record is None or record.get(field) not in allowed_values:
            return False
        record.update(data)
        return True

    async def delete_record(self, collection: str, record_id: str) -> None:
        """Delete a record, raising RecordNotFoundError if missing."""
        self._check_failure()
        records = self._collections.get(collection, {})
        if record_id not in records:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        del records[record_id]

    async def list_records(
        self,
        collection: str,
        page: int = 1,
        per_page: int = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List records with optional filtering, sorting and pagination."""
        self._check_failure()
        records = list(self._collections.get(collection, {}).values())

        if filter_query:
            records = [r for r in records if self._parse_filter(filter_query, r)]

        if sort:
            records = self._apply_sort(records, sort)

        start_idx = (page - 1) * per_page
        return [copy.deepcopy(r) for r in records[start_idx : start_idx + per_page]]

    def _parse_filter(self, filter_str: str, record: dict[str, Any]) -> bool:
        """Evaluate a filter expression against a record.

        Supports single comparisons, && between terms and a parenthesized
        || group as one term.
        """
        filter_str = filter_str.strip()
        if not filter_str:
            return True

        and_terms = _split_top_level(filter_str, "&&")
        if len(and_terms) > 1:
            return all(self._parse_filter(cond, record) for cond in and_terms)

        if filter_str.startswith("(") and filter_str.endswith(")"):
            return any(self._parse_filter(cond, record) for cond in _split_top_level(filter_str[1:-1], "||"))

        match = _COMPARISON_RE.fullmatch(filter_str)
        if not match:
            raise DatabaseError(f"Invalid filter syntax: {filter_str}")

        field, op, double_quoted, single_quoted = match.groups()
        value = json.loads(f'"{double_quoted}"') if double_quoted is not None else single_quoted
        actual = str(record.get(field, ""))
        if op == "~":
            return value.lower() in actual.lower()
        return {
            "=": actual == value,
            "!=": actual != value,
            ">": actual > value,
            "<": actual < value,
            ">=": actual >= value,
            "<=": actual <= value,
        }[op]

    def _apply_sort(self, records: list[dict], sort: str) -> list[dict]:
        """Sort records by "field [ASC|DESC]"."""
        parts = sort.split()
        field = parts[0]
        reverse = len(parts) > 1 and parts[1].upper() == "DESC"
        return sorted(records, key=lambda r: r.get(field, ""), reverse=reverse)


class FakeClock:
    """Controllable clock; advance it to move eligibility forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeTaskStore:
    """In-memory TaskStore with call counters and failure/delay injection."""

    def __init__(self, clock: Clock):
        self._clock = clock
        self.tasks: dict[str, Task] = {}
        self.scan_calls = 0
        self.fetch_calls = 0
        self.complete_calls = 0
        self.writes = 0
        self.scan_error: Exception | None = None
        self.fetch_error: Exception | None = None
        self.complete_error: Exception | None = None
        self.scan_delay = 0.0
        self.fetch_delay = 0.0
        self.complete_delay = 0.0
        self._next_id = 1

    def add(
        self,
        *,
        task_id: str | None = None,
        status: TaskStatus = TaskStatus.PENDING,
        created: datetime | None = None,
        owner_id: str = "user-1",
    ) -> Task:
        """Insert a task directly, bypassing the service layer."""
        if task_id is None:
            task_id = f"task-{self._next_id}"
            self._next_id += 1
        created = created or self._clock()
        task = Task(
            id=task_id,
            owner_id=owner_id,
            title=f"Task {task_id}",
            status=status,
            created=created,
            updated=created,
        )
        self.tasks[task_id] = task
        return task

    def set_status(self, task_id: str, status: TaskStatus) -> None:
        self.tasks[task_id] = self.tasks[task_id].model_copy(update={"status": status, "updated": self._clock()})

    def delete(self, task_id: str) -> None:
        del self.tasks[task_id]

    async def scan_eligible(self, cutoff: datetime) -> list[EligibleTask]:
        self.scan_calls += 1
        if self.scan_delay:
            await asyncio.sleep(self.scan_delay)
        if self.scan_error is not None:
            raise self.scan_error
        eligible = [t for t in self.tasks.values() if t.status in OPEN_STATUSES and t.created < cutoff]
        eligible.sort(key=lambda t: t.created)
        return [EligibleTask(id=t.id, status=t.status, created=t.created) for t in eligible]

    async def fetch_by_id(self, task_id: str) -> Task | None:
        self.fetch_calls += 1
        if self.fetch_delay:
            await asyncio.sleep(self.fetch_delay)
        if self.fetch_error is not None:
            raise self.fetch_error
        task = self.tasks.get(task_id)
        return task.model_copy() if task is not None else None

    async def conditional_complete(self, task_id: str) -> bool:
        self.complete_calls += 1
        if self.complete_delay:
            await asyncio.sleep(self.complete_delay)
        if self.complete_error is not None:
            raise self.complete_error
        task = self.tasks.get(task_id)
        if task is None or task.status not in OPEN_STATUSES:
            return False
        self.tasks[task_id] = task.model_copy(update={"status": TaskStatus.COMPLETED, "updated": self._clock()})
        self.writes += 1
        return True


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01) -> None:
    """Poll ``predicate`` until it is true; fail the test after ``timeout`` seconds."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail(f"Condition not met within {timeout}s")
        await asyncio.sleep(interval)
