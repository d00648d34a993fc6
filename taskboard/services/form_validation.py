"""Validation of user-entered task fields."""

from datetime import date
from typing import Any, Dict, Optional

from ..models.task import Task
from ..schemas import TaskFormData, TaskUpdate

MIN_TITLE_LENGTH = 3


def validate_task_form(form: TaskFormData, today: Optional[date] = None) -> Dict[str, str]:
    """Validate candidate task fields.

    Args:
        form: Field values to check
        today: Reference date for the due date check, defaults to the local date

    Returns:
        Mapping of field name to error message; empty when the form is valid
    """
    today = today or date.today()
    errors: Dict[str, str] = {}

    title = form.title.strip()
    if not title:
        errors["title"] = "Title is required"
    elif len(title) < MIN_TITLE_LENGTH:
        errors["title"] = f"Title must be at least {MIN_TITLE_LENGTH} characters"

    if form.due_date is None:
        errors["due_date"] = "Due date is required"
    elif form.due_date < today:
        errors["due_date"] = "Due date cannot be in the past"

    return errors


class TaskFormState:
    """Values and errors of a task form being filled in.

    Editing a field clears only that field's error; the full check runs again
    on every submission.
    """

    def __init__(self, data: Optional[TaskFormData] = None, task_id: Optional[str] = None):
        self.data = data or TaskFormData()
        self.task_id = task_id
        self.errors: Dict[str, str] = {}

    @classmethod
    def for_task(cls, task: Task) -> "TaskFormState":
        """Pre-fill the form from an existing task."""
        return cls(
            TaskFormData(
                title=task.title,
                description=task.description,
                status=task.status,
                due_date=task.due_date,
            ),
            task_id=task.id,
        )

    @property
    def is_edit(self) -> bool:
        return self.task_id is not None

    def change(self, field: str, value: Any) -> None:
        """Set one field and clear its error, if any."""
        if field not in TaskFormData.model_fields:
            raise KeyError(field)
        values = self.data.model_dump()
        values[field] = value
        self.data = TaskFormData.model_validate(values)
        self.errors.pop(field, None)

    def apply(self, update: TaskUpdate) -> None:
        """Change every field the update sets."""
        for field, value in update.changes().items():
            self.change(field, value)

    def validate(self, today: Optional[date] = None) -> Dict[str, str]:
        self.errors = validate_task_form(self.data, today)
        return dict(self.errors)

    def to_update(self) -> TaskUpdate:
        return TaskUpdate(**self.data.model_dump())
