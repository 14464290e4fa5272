"""Pydantic models for creating records in database."""

from pydantic import BaseModel, Field, field_validator


class TaskCreate(BaseModel):
    """Pydantic model for creating a task record."""

    owner_id: str = Field(..., description="ID of the owning user")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")

    @field_validator("owner_id")
    @classmethod
    def validate_owner_id(cls, v: str) -> str:
        """Validate the owner reference is present."""
        if not v.strip():
            msg = "owner_id is required"
            raise ValueError(msg)
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Validate the title is not blank."""
        if not v.strip():
            msg = "title is required"
            raise ValueError(msg)
        return v.strip()
