"""Tests for the task list projection and view-model."""

from datetime import date

import pytest

from taskboard.models.task import TaskStatus
from taskboard.schemas import TaskFormData
from taskboard.services.task_list_view import (
    ALL_STATUSES,
    SortOrder,
    TaskAction,
    TaskListViewModel,
    project_tasks,
)

from fakes import make_task


class TestProjectTasks:
    """Test the pure filter/search/sort projection."""

    def test_search_is_case_insensitive(self):
        """Test title search ignores case."""
        tasks = [make_task("Buy milk", "2024-01-01"), make_task("Pay bills", "2024-01-02")]

        visible = project_tasks(tasks, search="bu")

        assert [t.title for t in visible] == ["Buy milk"]

    def test_empty_search_keeps_everything(self):
        """Test an empty search does not filter."""
        tasks = [make_task("Buy milk", "2024-01-01"), make_task("Pay bills", "2024-01-02")]

        assert len(project_tasks(tasks, search="")) == 2

    def test_search_only_matches_title(self):
        """Test that descriptions are not searched."""
        tasks = [make_task("Pay bills", "2024-01-02", description="buy stamps")]

        assert project_tasks(tasks, search="buy") == []

    def test_status_filter(self):
        """Test filtering by status."""
        tasks = [
            make_task("One", "2024-01-01"),
            make_task("Two", "2024-01-02", TaskStatus.IN_PROGRESS),
            make_task("Three", "2024-01-03", TaskStatus.COMPLETED),
        ]

        visible = project_tasks(tasks, status_filter=TaskStatus.IN_PROGRESS)

        assert [t.title for t in visible] == ["Two"]
        assert len(project_tasks(tasks, status_filter=ALL_STATUSES)) == 3

    def test_status_filter_accepts_plain_value(self):
        """Test filtering with the status text."""
        tasks = [make_task("One", "2024-01-01"), make_task("Two", "2024-01-02", TaskStatus.COMPLETED)]

        assert [t.title for t in project_tasks(tasks, status_filter="Completed")] == ["Two"]

    def test_sort_ascending_and_descending(self):
        """Test due date sorting in both directions."""
        tasks = [
            make_task("Fifth", "2024-01-05"),
            make_task("First", "2024-01-01"),
            make_task("Tenth", "2024-01-10"),
        ]

        ascending = project_tasks(tasks, sort_order=SortOrder.ASC)
        descending = project_tasks(tasks, sort_order=SortOrder.DESC)

        assert [t.due_date.day for t in ascending] == [1, 5, 10]
        assert [t.due_date.day for t in descending] == [10, 5, 1]

    def test_sort_is_stable_for_equal_dates(self):
        """Test tasks due the same day keep their collection order."""
        tasks = [
            make_task("A", "2024-01-05"),
            make_task("B", "2024-01-01"),
            make_task("C", "2024-01-05"),
        ]

        assert [t.title for t in project_tasks(tasks)] == ["B", "A", "C"]
        assert [t.title for t in project_tasks(tasks, sort_order="desc")] == ["A", "C", "B"]

    def test_source_not_mutated(self):
        """Test the projection leaves the source list alone."""
        tasks = [make_task("Later", "2024-01-05"), make_task("Sooner", "2024-01-01")]

        project_tasks(tasks)

        assert [t.title for t in tasks] == ["Later", "Sooner"]


class TestTaskListViewModel:
    """Test the view-model bound to a task collection."""

    @pytest.mark.asyncio
    async def test_recomputes_on_collection_change(self, container):
        """Test the projection follows container mutations."""
        view = TaskListViewModel(container)
        assert view.visible_tasks == ()

        await container.add(TaskFormData(title="Buy milk", due_date=date(2030, 1, 1)))

        assert [t.title for t in view.visible_tasks] == ["Buy milk"]

    @pytest.mark.asyncio
    async def test_recomputes_on_settings_change(self, container):
        """Test search, filter and sort changes update the projection."""
        await container.add(TaskFormData(title="Buy milk", due_date=date(2030, 1, 5)))
        await container.add(TaskFormData(title="Buy bread", due_date=date(2030, 1, 1),
                                         status=TaskStatus.IN_PROGRESS))
        await container.add(TaskFormData(title="Pay bills", due_date=date(2030, 1, 3)))
        view = TaskListViewModel(container)

        assert [t.title for t in view.visible_tasks] == ["Buy bread", "Pay bills", "Buy milk"]

        view.search = "BUY"
        assert [t.title for t in view.visible_tasks] == ["Buy bread", "Buy milk"]

        view.status_filter = "Pending"
        assert [t.title for t in view.visible_tasks] == ["Buy milk"]

        view.status_filter = ALL_STATUSES
        assert view.toggle_sort() == SortOrder.DESC
        assert [t.title for t in view.visible_tasks] == ["Buy milk", "Buy bread"]

    @pytest.mark.asyncio
    async def test_empty_messages(self, container):
        """Test the empty-state message depends on active filters."""
        view = TaskListViewModel(container)
        assert view.empty_message == "Create your first task to get started"

        await container.add(TaskFormData(title="Buy milk", due_date=date(2030, 1, 1)))
        assert view.empty_message is None

        view.search = "nothing matches"
        assert view.empty_message == "Try adjusting your search or filter"

    def test_actions_for(self):
        """Test completed tasks can only be deleted."""
        open_task = make_task("Open", "2024-01-01")
        done_task = make_task("Done", "2024-01-01", TaskStatus.COMPLETED)

        assert TaskListViewModel.actions_for(open_task) == [
            TaskAction.COMPLETE, TaskAction.EDIT, TaskAction.DELETE
        ]
        assert TaskListViewModel.actions_for(done_task) == [TaskAction.DELETE]

    @pytest.mark.asyncio
    async def test_detach_stops_updates(self, container):
        """Test a detached view-model no longer follows the collection."""
        view = TaskListViewModel(container)
        view.detach()

        await container.add(TaskFormData(title="Buy milk", due_date=date(2030, 1, 1)))

        assert view.visible_tasks == ()

    def test_invalid_status_filter_rejected(self, container):
        """Test unknown status filters are refused."""
        view = TaskListViewModel(container)

        with pytest.raises(ValueError):
            view.status_filter = "Archived"
