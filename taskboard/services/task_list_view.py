"""Filtered, searched and sorted projection of the task collection."""

from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple, Union

from ..models.task import Task, TaskStatus
from .task_state import TaskStateContainer

ALL_STATUSES = "All"

StatusFilter = Union[TaskStatus, str]


class SortOrder(str, Enum):
    """Due date sort direction."""
    ASC = "asc"
    DESC = "desc"


class TaskAction(str, Enum):
    """Actions offered for a task in the list."""
    COMPLETE = "complete"
    EDIT = "edit"
    DELETE = "delete"


def project_tasks(
    tasks: Iterable[Task],
    search: str = "",
    status_filter: StatusFilter = ALL_STATUSES,
    sort_order: SortOrder = SortOrder.ASC,
) -> List[Task]:
    """Return the visible tasks, leaving the source untouched.

    Title search is a case-insensitive substring match. The sort is stable, so
    tasks due the same day keep their collection order in both directions.
    """
    visible = list(tasks)

    if search:
        needle = search.lower()
        visible = [task for task in visible if needle in task.title.lower()]

    if status_filter != ALL_STATUSES:
        visible = [task for task in visible if task.status == status_filter]

    if SortOrder(sort_order) == SortOrder.DESC:
        # reverse=True keeps ties in their original order
        visible.sort(key=lambda t: t.due_date, reverse=True)
    else:
        visible.sort(key=lambda t: t.due_date)
    return visible


class TaskListViewModel:
    """Keeps the list projection current as the collection or settings change."""

    def __init__(self, container: TaskStateContainer):
        self._container = container
        self._search = ""
        self._status_filter: StatusFilter = ALL_STATUSES
        self._sort_order = SortOrder.ASC
        self._visible: List[Task] = []
        self._unsubscribe: Optional[Callable[[], None]] = container.subscribe(
            lambda _: self.recompute()
        )
        self.recompute()

    @property
    def search(self) -> str:
        return self._search

    @search.setter
    def search(self, value: str) -> None:
        self._search = value or ""
        self.recompute()

    @property
    def status_filter(self) -> StatusFilter:
        return self._status_filter

    @status_filter.setter
    def status_filter(self, value: StatusFilter) -> None:
        self._status_filter = value if value == ALL_STATUSES else TaskStatus(value)
        self.recompute()

    @property
    def sort_order(self) -> SortOrder:
        return self._sort_order

    @sort_order.setter
    def sort_order(self, value: SortOrder) -> None:
        self._sort_order = SortOrder(value)
        self.recompute()

    @property
    def visible_tasks(self) -> Tuple[Task, ...]:
        return tuple(self._visible)

    def toggle_sort(self) -> SortOrder:
        self.sort_order = SortOrder.DESC if self._sort_order == SortOrder.ASC else SortOrder.ASC
        return self._sort_order

    def recompute(self) -> None:
        self._visible = project_tasks(
            self._container.tasks, self._search, self._status_filter, self._sort_order
        )

    @property
    def empty_message(self) -> Optional[str]:
        """Message for an empty list, or None when tasks are visible."""
        if self._visible:
            return None
        if self._search or self._status_filter != ALL_STATUSES:
            return "Try adjusting your search or filter"
        return "Create your first task to get started"

    @staticmethod
    def actions_for(task: Task) -> List[TaskAction]:
        # Completed tasks can only be deleted
        if task.status == TaskStatus.COMPLETED:
            return [TaskAction.DELETE]
        return [TaskAction.COMPLETE, TaskAction.EDIT, TaskAction.DELETE]

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
