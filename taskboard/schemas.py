"""API request/response schemas for the task manager."""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .models.task import Task, TaskStatus, utc_now


def _blank_date_to_none(value):
    # Date inputs post an empty string when nothing was picked
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Task-related schemas
class TaskFormData(BaseModel):
    """User-entered task fields, as submitted by the task form."""
    title: str = Field(default="", description="Task title")
    description: str = Field(default="", description="Task description")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Task status")
    due_date: Optional[date] = Field(default=None, description="Task due date")

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, value):
        return _blank_date_to_none(value)


class TaskUpdate(BaseModel):
    """Partial task update. Fields left as None are not changed."""
    title: Optional[str] = Field(None, description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: Optional[TaskStatus] = Field(None, description="Task status")
    due_date: Optional[date] = Field(None, description="Task due date")

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, value):
        return _blank_date_to_none(value)

    def changes(self) -> Dict[str, object]:
        """Return only the fields that carry a value."""
        return self.model_dump(exclude_none=True)


class TaskResponse(BaseModel):
    """Schema for task API responses."""
    id: str = Field(..., description="Task identifier")
    owner_id: str = Field(..., description="Owning user identifier")
    title: str = Field(..., description="Task title")
    description: str = Field(..., description="Task description")
    status: TaskStatus = Field(..., description="Task status")
    due_date: date = Field(..., description="Task due date")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")

    class Config:
        """Pydantic configuration."""
        from_attributes = True

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls.model_validate(task)


class TaskListResponse(BaseModel):
    """Schema for task list API responses."""
    tasks: List[TaskResponse] = Field(..., description="Visible tasks after search, filter and sort")
    total: int = Field(..., description="Number of tasks in the collection")
    loading: bool = Field(default=False, description="Whether a refresh is in flight")
    error: Optional[str] = Field(None, description="Last refresh error, if any")
    empty_message: Optional[str] = Field(None, description="Message to show when no task is visible")


class TaskStats(BaseModel):
    """Task counts by status."""
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0


class MutationResult(BaseModel):
    """Outcome of a state container mutation."""
    data: Optional[Task] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FormErrorsResponse(BaseModel):
    """Field errors produced by form validation."""
    valid: bool = Field(..., description="Whether the form has no errors")
    fields: Dict[str, str] = Field(default_factory=dict, description="Field name to error message")


# Auth-related schemas
class Credentials(BaseModel):
    """Email and password submitted by the sign-in form."""
    email: str = Field(..., min_length=3, description="Account email")
    password: str = Field(..., min_length=1, description="Account password")


class UserResponse(BaseModel):
    """Schema for the signed-in user."""
    id: str
    email: Optional[str] = None


class SessionResponse(BaseModel):
    """Schema for session status responses."""
    status: str = Field(..., description="loading, authenticated or unauthenticated")
    user: Optional[UserResponse] = Field(None, description="Signed-in user")


# Health check schema
class HealthResponse(BaseModel):
    """Schema for health check responses."""
    status: str = Field(default="healthy", description="Service health status")
    timestamp: datetime = Field(default_factory=utc_now, description="Health check timestamp")
    version: str = Field(default="1.0.0", description="Application version")
