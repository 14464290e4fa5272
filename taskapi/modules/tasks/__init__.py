"""Task records: CRUD service and the store used by the auto-completion worker."""

from taskapi.modules.tasks.store import SqliteTaskStore, TaskStore


__all__ = ["SqliteTaskStore", "TaskStore"]
