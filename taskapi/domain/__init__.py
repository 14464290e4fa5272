"""Domain models and DTOs."""

from taskapi.domain.create_models import TaskCreate
from taskapi.domain.task import OPEN_STATUSES, EligibleTask, Task, TaskStatus
from taskapi.domain.update_models import TaskUpdate


__all__ = [
    "OPEN_STATUSES",
    "EligibleTask",
    "Task",
    "TaskCreate",
    "TaskStatus",
    "TaskUpdate",
]
