"""Domain models for the task manager."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class TaskStatus(str, Enum):
    """Task status enumeration."""
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class Task(BaseModel):
    """Task domain model.

    Mirrors a row of the store's ``tasks`` table. The owner column is called
    ``user_id`` in the store, so both names are accepted on input.
    """

    id: str = Field(..., description="Store-generated task identifier")
    owner_id: str = Field(
        ...,
        validation_alias=AliasChoices("owner_id", "user_id"),
        description="Identifier of the owning user",
    )
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Task description")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Task status")
    due_date: date = Field(..., description="Calendar due date")
    completed_at: Optional[datetime] = Field(default=None, description="Completion timestamp")
    created_at: datetime = Field(default_factory=utc_now, description="Task creation timestamp")
    updated_at: datetime = Field(default_factory=utc_now, description="Task last update timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        populate_by_name = True

    @field_validator("description", mode="before")
    @classmethod
    def null_description_to_empty(cls, value):
        # Nullable column in the store
        return "" if value is None else value

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def update_timestamp(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = utc_now()

    def mark_completed(self) -> None:
        """Mark task as completed, stamping completed_at."""
        now = utc_now()
        self.status = TaskStatus.COMPLETED
        self.completed_at = now
        self.updated_at = now
