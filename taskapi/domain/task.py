"""Task domain models and enums."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class TaskStatus(StrEnum):
    """Task lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# Statuses the auto-completion worker may move to COMPLETED.
OPEN_STATUSES: frozenset[TaskStatus] = frozenset({TaskStatus.PENDING, TaskStatus.IN_PROGRESS})


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID")
    owner_id: str = Field(..., description="ID of the user who owns the task")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current lifecycle status")
    created: datetime = Field(..., description="Creation timestamp (UTC)")
    updated: datetime = Field(..., description="Last update timestamp (UTC)")


class EligibleTask(BaseModel):
    """Minimal view of a task returned by an eligibility scan."""

    id: str
    status: TaskStatus
    created: datetime
