"""Task service for CRUD operations on task records."""

import logging
import uuid

from taskapi.core import db_client
from taskapi.core.clock import format_timestamp, utc_now
from taskapi.core.config import constants
from taskapi.core.logging import span
from taskapi.domain.create_models import TaskCreate
from taskapi.domain.task import Task, TaskStatus
from taskapi.domain.update_models import TaskUpdate
from taskapi.modules.tasks.store import COLLECTION, record_to_task


logger = logging.getLogger(__name__)


def _check_ownership(*, task: Task, actor_id: str, is_admin: bool) -> None:
    if not is_admin and task.owner_id != actor_id:
        msg = f"User {actor_id} is not allowed to modify task {task.id}"
        raise PermissionError(msg)


async def create_task(*, owner_id: str, title: str, description: str = "") -> Task:
    """Create a new task in the pending state.

    Args:
        owner_id: ID of the owning user
        title: Task title (required)
        description: Optional description

    Returns:
        Created task

    Raises:
        ValueError: If owner_id or title is blank
        db_client.DatabaseError: If database operation fails
    """
    with span("task_service.create_task"):
        # pydantic's ValidationError is a ValueError
        payload = TaskCreate(owner_id=owner_id, title=title, description=description)

        now = format_timestamp(utc_now())
        record = await db_client.create_record(
            collection=COLLECTION,
            data={
                "id": uuid.uuid4().hex,
                "owner_id": payload.owner_id,
                "title": payload.title,
                "description": payload.description,
                "status": TaskStatus.PENDING.value,
                "created": now,
                "updated": now,
            },
        )
        logger.info("Created task: %s (owner: %s)", payload.title, payload.owner_id)
        return record_to_task(record)


async def get_task(*, task_id: str) -> Task:
    """Get a task by ID.

    Raises:
        db_client.RecordNotFoundError: If the task does not exist
    """
    with span("task_service.get_task"):
        record = await db_client.get_record(collection=COLLECTION, record_id=task_id)
        return record_to_task(record)


async def list_tasks_for_owner(*, owner_id: str) -> list[Task]:
    """List tasks owned by a user, newest first."""
    with span("task_service.list_tasks_for_owner"):
        records = await db_client.list_records(
            collection=COLLECTION,
            per_page=constants.DEFAULT_PER_PAGE_LIMIT,
            filter_query=f'owner_id = "{db_client.sanitize_param(owner_id)}"',
            sort="created DESC",
        )
        return [record_to_task(r) for r in records]


async def list_all_tasks() -> list[Task]:
    """List all tasks, newest first."""
    with span("task_service.list_all_tasks"):
        records = await db_client.list_records(
            collection=COLLECTION,
            per_page=constants.DEFAULT_PER_PAGE_LIMIT,
            sort="created DESC",
        )
        return [record_to_task(r) for r in records]


async def update_task(*, task_id: str, actor_id: str, update: TaskUpdate, is_admin: bool = False) -> Task:
    """Apply a partial update to a task.

    Empty fields leave the stored value unchanged. Setting ``status`` to
    completed here races with the auto-completion worker; the worker
    re-validates before writing, so either order ends in one completed task.

    Raises:
        db_client.RecordNotFoundError: If the task does not exist
        PermissionError: If the actor neither owns the task nor is an admin
    """
    with span("task_service.update_task"):
        task = await get_task(task_id=task_id)
        _check_ownership(task=task, actor_id=actor_id, is_admin=is_admin)

        data: dict[str, str] = {**update.changes(), "updated": format_timestamp(utc_now())}
        record = await db_client.update_record(collection=COLLECTION, record_id=task_id, data=data)

        logger.info("Updated task", extra={"task_id": task_id, "fields": sorted(data)})
        return record_to_task(record)


async def delete_task(*, task_id: str, actor_id: str, is_admin: bool = False) -> None:
    """Delete a task.

    Raises:
        db_client.RecordNotFoundError: If the task does not exist
        PermissionError: If the actor neither owns the task nor is an admin
    """
    with span("task_service.delete_task"):
        task = await get_task(task_id=task_id)
        _check_ownership(task=task, actor_id=actor_id, is_admin=is_admin)

        await db_client.delete_record(collection=COLLECTION, record_id=task_id)
        logger.info("Deleted task", extra={"task_id": task_id})
