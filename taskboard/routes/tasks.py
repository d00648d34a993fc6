"""Task management CRUD routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ..deps import get_dashboard, require_user
from ..errors import ValidationError
from ..models.task import TaskStatus
from ..schemas import (
    FormErrorsResponse,
    MutationResult,
    TaskFormData,
    TaskListResponse,
    TaskResponse,
    TaskStats,
    TaskUpdate,
)
from ..services.dashboard import Dashboard
from ..services.form_validation import TaskFormState
from ..services.task_list_view import ALL_STATUSES, SortOrder

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_user)])


def _task_or_error(result: MutationResult) -> TaskResponse:
    if result.error:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    return TaskResponse.from_task(result.data)


def _list_response(dashboard: Dashboard) -> TaskListResponse:
    container = dashboard.container
    view = dashboard.view
    return TaskListResponse(
        tasks=[TaskResponse.from_task(task) for task in view.visible_tasks],
        total=len(container.tasks),
        loading=container.loading,
        error=container.error,
        empty_message=view.empty_message,
    )


@router.get("/", response_model=TaskListResponse)
async def list_tasks(
    search: str = Query("", description="Case-insensitive title search"),
    status_filter: str = Query(ALL_STATUSES, alias="status"),
    sort: SortOrder = Query(SortOrder.ASC, description="Due date sort order"),
    dashboard: Dashboard = Depends(get_dashboard),
) -> TaskListResponse:
    """List the visible tasks.

    Args:
        search: Title search text
        status_filter: A task status, or "All"
        sort: Due date sort order
        dashboard: Dashboard instance

    Returns:
        Projection of the task collection
    """
    allowed = [ALL_STATUSES] + [s.value for s in TaskStatus]
    if status_filter not in allowed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown status filter '{status_filter}', expected one of {allowed}",
        )

    logger.debug(f"Listing tasks: search={search!r}, status={status_filter}, sort={sort.value}")

    view = dashboard.view
    view.search = search
    view.status_filter = status_filter
    view.sort_order = sort

    return _list_response(dashboard)


@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskFormData,
    dashboard: Dashboard = Depends(get_dashboard),
) -> TaskResponse:
    """Create a new task.

    Args:
        task_data: Task form data
        dashboard: Dashboard instance

    Returns:
        Created task response

    Raises:
        HTTPException: If the store rejects the task
    """
    logger.info(f"Creating new task: {task_data.title}")
    result = await dashboard.submit_form(TaskFormState(task_data))
    return _task_or_error(result)


@router.post("/validate", response_model=FormErrorsResponse)
async def validate_task(task_data: TaskFormData) -> FormErrorsResponse:
    """Check task fields without submitting them."""
    errors = TaskFormState(task_data).validate()
    return FormErrorsResponse(valid=not errors, fields=errors)


@router.get("/stats/", response_model=TaskStats)
async def get_task_statistics(dashboard: Dashboard = Depends(get_dashboard)) -> TaskStats:
    """Get task counts by status."""
    return dashboard.stats()


@router.post("/refresh", response_model=TaskListResponse)
async def refresh_tasks(dashboard: Dashboard = Depends(get_dashboard)) -> TaskListResponse:
    """Reload the task collection from the store.

    A failed reload keeps the previous collection and reports the error.
    """
    await dashboard.refresh()
    return _list_response(dashboard)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, dashboard: Dashboard = Depends(get_dashboard)) -> TaskResponse:
    """Get a task from the collection.

    Raises:
        HTTPException: If task not found
    """
    task = dashboard.container.get(task_id)
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task {task_id} not found"
        )
    return TaskResponse.from_task(task)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    dashboard: Dashboard = Depends(get_dashboard),
) -> TaskResponse:
    """Update a task.

    The changed fields are merged onto the task's current values and the
    whole form is validated again before anything is sent.

    Args:
        task_id: Task ID
        task_data: Task update data
        dashboard: Dashboard instance

    Returns:
        Updated task response

    Raises:
        HTTPException: If task not found or update fails
    """
    logger.info(f"Updating task: {task_id}")

    form = dashboard.open_form(task_id)
    if form is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task {task_id} not found"
        )

    try:
        form.apply(task_data)
    except ValueError as e:
        raise ValidationError({"form": str(e)}) from e

    result = await dashboard.submit_form(form)
    return _task_or_error(result)


@router.post("/{task_id}/complete", response_model=TaskResponse)
async def complete_task(task_id: str, dashboard: Dashboard = Depends(get_dashboard)) -> TaskResponse:
    """Mark a task as completed."""
    logger.info(f"Completing task: {task_id}")
    result = await dashboard.complete_task(task_id)
    return _task_or_error(result)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str, dashboard: Dashboard = Depends(get_dashboard)) -> Response:
    """Delete a task.

    Raises:
        HTTPException: If the store reports a failure
    """
    logger.info(f"Deleting task: {task_id}")

    result = await dashboard.delete_task(task_id)
    if result.error:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
