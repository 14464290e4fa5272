"""Pydantic models for updating records in database."""

from pydantic import BaseModel, Field

from taskapi.domain.task import TaskStatus


class TaskUpdate(BaseModel):
    """Partial update of a task; empty or missing fields are left unchanged."""

    title: str | None = Field(default=None, description="New title")
    description: str | None = Field(default=None, description="New description")
    status: TaskStatus | None = Field(default=None, description="New status")

    def changes(self) -> dict[str, str]:
        """Return the fields that carry a new value."""
        data: dict[str, str] = {}
        if self.title:
            data["title"] = self.title
        if self.description:
            data["description"] = self.description
        if self.status is not None:
            data["status"] = self.status.value
        return data
