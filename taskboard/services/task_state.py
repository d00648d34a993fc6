"""Task state container: the in-process copy of the current user's tasks."""

import logging
from typing import Callable, List, Optional, Tuple

from ..auth.session import SessionProvider
from ..errors import StoreError
from ..models.task import Task, TaskStatus
from ..schemas import MutationResult, TaskFormData, TaskStats, TaskUpdate
from .store_client import TaskStoreClient

logger = logging.getLogger(__name__)

Observer = Callable[["TaskStateContainer"], None]


def _message(error: StoreError, fallback: str) -> str:
    return error.message or fallback


class TaskStateContainer:
    """Owns the authoritative local task collection.

    Every mutation is one store round trip; on success the local collection is
    patched with the record the store returned, on failure it is left as it
    was and the error message is handed back to the caller. Observers are
    notified after every state change.

    Calls are expected one at a time from the event loop. Overlapping calls
    are not coordinated: whichever store response arrives last wins.
    """

    def __init__(self, store: TaskStoreClient, session_provider: SessionProvider):
        self._store = store
        self._session_provider = session_provider
        self._tasks: List[Task] = []
        self._observers: List[Observer] = []
        self._closed = False
        self.loading = False
        self.error: Optional[str] = None

    @property
    def tasks(self) -> Tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a callable that unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self) -> None:
        for observer in list(self._observers):
            observer(self)

    def get(self, task_id: str) -> Optional[Task]:
        return next((task for task in self._tasks if task.id == task_id), None)

    def _replace(self, task: Task) -> None:
        self._tasks = [task if existing.id == task.id else existing for existing in self._tasks]

    async def refresh(self) -> None:
        """Reload the whole collection from the store.

        On failure the previous collection is kept and ``error`` is set.
        """
        self.loading = True
        self._notify()
        try:
            user = self._session_provider.require_user()
            tasks = await self._store.list_tasks(user.id)
        except StoreError as e:
            if self._closed:
                return
            self.error = _message(e, "Failed to fetch tasks")
            logger.error(f"Error fetching tasks: {self.error}")
        else:
            if self._closed:
                return
            self._tasks = list(tasks)
            self.error = None
            logger.debug(f"Refreshed {len(self._tasks)} tasks")
        finally:
            if not self._closed:
                self.loading = False
                self._notify()

    async def add(self, form: TaskFormData) -> MutationResult:
        """Create a task and append it to the collection."""
        try:
            user = self._session_provider.require_user()
            task = await self._store.create_task(form, user.id)
        except StoreError as e:
            logger.error(f"Error adding task: {e.message}")
            return MutationResult(error=_message(e, "Failed to add task"))

        if not self._closed:
            # Appended unsorted until the next refresh
            self._tasks = self._tasks + [task]
            self._notify()
        return MutationResult(data=task)

    async def edit(self, task_id: str, update: TaskUpdate) -> MutationResult:
        """Update a task and replace the local record in place."""
        try:
            task = await self._store.update_task(task_id, update)
        except StoreError as e:
            logger.error(f"Error updating task {task_id}: {e.message}")
            return MutationResult(error=_message(e, "Failed to update task"))

        if not self._closed:
            self._replace(task)
            self._notify()
        return MutationResult(data=task)

    async def remove(self, task_id: str) -> MutationResult:
        """Delete a task and drop it from the collection."""
        try:
            await self._store.delete_task(task_id)
        except StoreError as e:
            logger.error(f"Error deleting task {task_id}: {e.message}")
            return MutationResult(error=_message(e, "Failed to delete task"))

        if not self._closed:
            self._tasks = [task for task in self._tasks if task.id != task_id]
            self._notify()
        return MutationResult()

    async def complete(self, task_id: str) -> MutationResult:
        """Run the completion action and replace the local record."""
        try:
            task = await self._store.complete_task(task_id)
        except StoreError as e:
            logger.error(f"Error completing task {task_id}: {e.message}")
            return MutationResult(error=_message(e, "Failed to mark as completed"))

        if not self._closed:
            self._replace(task)
            self._notify()
        return MutationResult(data=task)

    def stats(self) -> TaskStats:
        """Count tasks by status."""
        counts = {status: 0 for status in TaskStatus}
        for task in self._tasks:
            counts[TaskStatus(task.status)] += 1
        return TaskStats(
            total=len(self._tasks),
            pending=counts[TaskStatus.PENDING],
            in_progress=counts[TaskStatus.IN_PROGRESS],
            completed=counts[TaskStatus.COMPLETED],
        )

    def clear(self) -> None:
        """Drop the local collection, e.g. after sign-out."""
        self._tasks = []
        self.error = None
        self.loading = False
        self._notify()

    def close(self) -> None:
        """Detach observers; results of calls still in flight are discarded."""
        self._closed = True
        self._observers.clear()
