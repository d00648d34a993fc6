"""Dashboard controller tying the form, the collection and notifications together."""

import logging
from datetime import date
from typing import Optional

from ..errors import ValidationError
from ..schemas import MutationResult, TaskStats
from .form_validation import TaskFormState
from .notifications import NotificationCenter
from .task_list_view import TaskListViewModel
from .task_state import TaskStateContainer

logger = logging.getLogger(__name__)


class Dashboard:
    """Handles user actions and reports each outcome as a notification."""

    def __init__(self, container: TaskStateContainer, notifications: NotificationCenter):
        """Initialize the dashboard.

        Args:
            container: The current user's task collection
            notifications: Where success and error messages are posted
        """
        self.container = container
        self.notifications = notifications
        self.view = TaskListViewModel(container)

    def open_form(self, task_id: Optional[str] = None) -> Optional[TaskFormState]:
        """Return an empty form, or one pre-filled from a task in the collection.

        Returns None when the task is not in the collection.
        """
        if task_id is None:
            return TaskFormState()
        task = self.container.get(task_id)
        return TaskFormState.for_task(task) if task else None

    async def submit_form(self, form: TaskFormState, today: Optional[date] = None) -> MutationResult:
        """Validate the form, then create or update the task.

        Raises:
            ValidationError: If any field is invalid; nothing is sent to the store
        """
        errors = form.validate(today)
        if errors:
            logger.info(f"Task form rejected: {errors}")
            raise ValidationError(errors)

        if form.is_edit:
            result = await self.container.edit(form.task_id, form.to_update())
            success = "Task updated successfully!"
        else:
            result = await self.container.add(form.data)
            success = "Task created successfully!"

        self._report(result, success)
        return result

    async def delete_task(self, task_id: str) -> MutationResult:
        result = await self.container.remove(task_id)
        self._report(result, "Task deleted successfully!")
        return result

    async def complete_task(self, task_id: str) -> MutationResult:
        result = await self.container.complete(task_id)
        self._report(result, "Task marked as completed!")
        return result

    async def refresh(self) -> None:
        await self.container.refresh()

    def stats(self) -> TaskStats:
        return self.container.stats()

    def reset(self) -> None:
        """Forget the signed-out user's tasks and messages."""
        self.container.clear()
        self.notifications.dismiss()

    def close(self) -> None:
        self.view.detach()
        self.container.close()

    def _report(self, result: MutationResult, success: str) -> None:
        if result.error:
            self.notifications.error(result.error)
        else:
            self.notifications.success(success)
