"""Tests for the dashboard controller and notifications."""

from datetime import date, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from taskboard.errors import StoreError, ValidationError
from taskboard.models.task import TaskStatus
from taskboard.schemas import TaskFormData
from taskboard.services.form_validation import TaskFormState
from taskboard.services.notifications import NotificationCenter, NotificationKind

from fakes import FakeClock


def future(days: int = 7) -> date:
    return date.today() + timedelta(days=days)


class TestNotificationCenter:
    """Test transient notifications."""

    def test_show_and_expire(self):
        """Test a notification disappears after the timeout."""
        clock = FakeClock()
        center = NotificationCenter(timeout_seconds=3.0, clock=clock)

        center.success("Saved")
        clock.advance(2.9)
        assert center.current.message == "Saved"

        clock.advance(0.1)
        assert center.current is None

    def test_new_notification_replaces_old(self):
        """Test only the latest notification is kept."""
        center = NotificationCenter(clock=FakeClock())

        center.success("First")
        center.error("Second")

        assert center.current.message == "Second"
        assert center.current.kind == NotificationKind.ERROR

    def test_dismiss(self):
        """Test dismissing clears the notification."""
        center = NotificationCenter(clock=FakeClock())
        center.error("Broken")

        center.dismiss()

        assert center.current is None


class TestDashboard:
    """Test dashboard handlers."""

    @pytest.mark.asyncio
    async def test_submit_new_form_creates_task(self, dashboard):
        """Test creating a task through the form."""
        form = dashboard.open_form()
        form.change("title", "Write report")
        form.change("due_date", future())

        result = await dashboard.submit_form(form)

        assert result.ok
        assert len(dashboard.container.tasks) == 1
        assert dashboard.notifications.current.message == "Task created successfully!"
        assert [t.title for t in dashboard.view.visible_tasks] == ["Write report"]

    @pytest.mark.asyncio
    async def test_submit_invalid_form_raises(self, dashboard):
        """Test validation failures never reach the store."""
        form = TaskFormState(TaskFormData(title="ab", due_date=date.today() - timedelta(days=1)))

        with patch.object(dashboard.container, "add", AsyncMock()) as mock_add:
            with pytest.raises(ValidationError) as exc_info:
                await dashboard.submit_form(form)

        assert set(exc_info.value.errors) == {"title", "due_date"}
        mock_add.assert_not_called()
        assert dashboard.notifications.current is None

    @pytest.mark.asyncio
    async def test_submit_edit_form_updates_task(self, dashboard):
        """Test editing a task through a pre-filled form."""
        created = (await dashboard.container.add(
            TaskFormData(title="Draft", due_date=future())
        )).data

        form = dashboard.open_form(created.id)
        form.change("status", TaskStatus.IN_PROGRESS)
        result = await dashboard.submit_form(form)

        assert result.ok
        assert dashboard.container.get(created.id).status == TaskStatus.IN_PROGRESS
        assert dashboard.notifications.current.message == "Task updated successfully!"

    def test_open_form_for_unknown_task(self, dashboard):
        """Test opening an edit form for a task not in the collection."""
        assert dashboard.open_form("missing") is None

    @pytest.mark.asyncio
    async def test_store_failure_posts_error_notification(self, dashboard):
        """Test store errors surface as error notifications."""
        form = TaskFormState(TaskFormData(title="Write report", due_date=future()))

        with patch.object(dashboard.container._store, "create_task",
                          AsyncMock(side_effect=StoreError("duplicate key"))):
            result = await dashboard.submit_form(form)

        assert result.error == "duplicate key"
        assert dashboard.notifications.current.kind == NotificationKind.ERROR
        assert dashboard.notifications.current.message == "duplicate key"

    @pytest.mark.asyncio
    async def test_complete_and_delete(self, dashboard):
        """Test the complete and delete handlers."""
        task = (await dashboard.container.add(
            TaskFormData(title="Write report", due_date=future())
        )).data

        await dashboard.complete_task(task.id)
        assert dashboard.notifications.current.message == "Task marked as completed!"
        assert dashboard.stats().completed == 1

        await dashboard.delete_task(task.id)
        assert dashboard.notifications.current.message == "Task deleted successfully!"
        assert dashboard.stats().total == 0

    @pytest.mark.asyncio
    async def test_notification_expires(self, dashboard, clock):
        """Test dashboard notifications use the configured timeout."""
        await dashboard.delete_task("missing")
        assert dashboard.notifications.current is not None

        clock.advance(3.0)

        assert dashboard.notifications.current is None

    @pytest.mark.asyncio
    async def test_reset(self, dashboard):
        """Test sign-out teardown clears tasks and notifications."""
        await dashboard.container.add(TaskFormData(title="Write report", due_date=future()))
        dashboard.notifications.success("Done")

        dashboard.reset()

        assert dashboard.container.tasks == ()
        assert dashboard.view.visible_tasks == ()
        assert dashboard.notifications.current is None

    def test_close(self, dashboard):
        """Test closing detaches the view and the container."""
        dashboard.close()

        assert dashboard.container.closed
