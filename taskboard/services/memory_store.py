"""In-process task store for development and tests."""

import logging
from threading import Lock
from typing import Dict, List
from uuid import uuid4

from ..auth.session import SessionProvider
from ..errors import StoreError
from ..models.task import Task, TaskStatus, utc_now
from ..schemas import TaskFormData, TaskUpdate
from .store_client import TaskStoreClient

logger = logging.getLogger(__name__)


class InMemoryTaskStoreClient(TaskStoreClient):
    """Task store with in-memory storage.

    Emulates the hosted store's row-level policy: every call is scoped to the
    session's current user, and other owners' rows behave as missing.
    """

    def __init__(self, session_provider: SessionProvider):
        """Initialize the in-memory store."""
        self._tasks: Dict[str, Task] = {}
        self._lock = Lock()
        self._session_provider = session_provider
        logger.info("Task store initialized with in-memory storage")

    def _owned(self, task_id: str) -> Task:
        owner_id = self._session_provider.require_user().id
        task = self._tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            logger.warning(f"Task {task_id} not found for owner {owner_id}")
            raise StoreError(f"Task {task_id} not found", status_code=404)
        return task

    async def list_tasks(self, owner_id: str) -> List[Task]:
        self._session_provider.require_user()
        with self._lock:
            tasks = [
                task.model_copy() for task in self._tasks.values()
                if task.owner_id == owner_id
            ]
        tasks.sort(key=lambda t: t.due_date)
        logger.debug(f"Listed {len(tasks)} tasks for owner {owner_id}")
        return tasks

    async def create_task(self, form: TaskFormData, owner_id: str) -> Task:
        if self._session_provider.require_user().id != owner_id:
            raise StoreError("Row violates the owner policy", status_code=403)
        if form.due_date is None:
            raise StoreError('null value in column "due_date" violates not-null constraint',
                             status_code=400)

        with self._lock:
            task = Task(
                id=str(uuid4()),
                owner_id=owner_id,
                title=form.title,
                description=form.description,
                status=form.status,
                due_date=form.due_date,
            )
            self._tasks[task.id] = task

        logger.info(f"Created task {task.id}: {task.title}")
        return task.model_copy()

    async def update_task(self, task_id: str, update: TaskUpdate) -> Task:
        with self._lock:
            task = self._owned(task_id)
            changes = update.changes()
            if update.status is not None and update.status != TaskStatus.COMPLETED:
                changes["completed_at"] = None
            changes["updated_at"] = utc_now()
            task = task.model_copy(update=changes)
            self._tasks[task_id] = task

        logger.info(f"Updated task {task_id}: {task.title}")
        return task.model_copy()

    async def complete_task(self, task_id: str) -> Task:
        with self._lock:
            task = self._owned(task_id).model_copy()
            old_status = task.status
            task.mark_completed()
            self._tasks[task_id] = task

        logger.info(f"Updated task {task_id} status: {old_status} -> {task.status}")
        return task.model_copy()

    async def delete_task(self, task_id: str) -> None:
        with self._lock:
            self._owned(task_id)
            task = self._tasks.pop(task_id)
        logger.info(f"Deleted task {task_id}: {task.title}")

    def clear_all_tasks(self) -> int:
        """Clear all tasks (for testing/development).

        Returns:
            Number of tasks that were cleared
        """
        with self._lock:
            count = len(self._tasks)
            self._tasks.clear()
            logger.warning(f"Cleared all {count} tasks")
            return count
