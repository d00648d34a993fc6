"""Task store clients.

A store client wraps the four CRUD verbs of the hosted ``tasks`` table. Every
call is a single round trip: no retries, no batching and no local cache.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp
import pydantic

from ..auth.session import SessionProvider
from ..config import Settings
from ..errors import AuthError, StoreError
from ..models.task import Task, TaskStatus, utc_now
from ..schemas import TaskFormData, TaskUpdate
from ..utils.logging import TimedOperation

logger = logging.getLogger(__name__)

# Owner column name in the hosted table
OWNER_COLUMN = "user_id"


class TaskStoreClient:
    """Interface of a task store, scoped to the current session."""

    async def list_tasks(self, owner_id: str) -> List[Task]:
        """Return the owner's tasks ordered by due date ascending."""
        raise NotImplementedError

    async def create_task(self, form: TaskFormData, owner_id: str) -> Task:
        """Insert a task and return the stored record."""
        raise NotImplementedError

    async def update_task(self, task_id: str, update: TaskUpdate) -> Task:
        """Patch a task, refreshing updated_at, and return the stored record."""
        raise NotImplementedError

    async def complete_task(self, task_id: str) -> Task:
        """Mark a task completed, stamping completed_at."""
        raise NotImplementedError

    async def delete_task(self, task_id: str) -> None:
        """Remove a task permanently."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release client resources."""


def _parse_row(row: Dict[str, Any]) -> Task:
    try:
        return Task.model_validate(row)
    except pydantic.ValidationError as e:
        logger.error(f"Invalid task row from store: {e.error_count()} errors")
        raise StoreError("Store returned an invalid task row") from e


def update_payload(update: TaskUpdate) -> Dict[str, Any]:
    """Build the column patch for a general update.

    The general update path never stamps completed_at. Moving a task out of
    Completed clears it.
    """
    payload: Dict[str, Any] = update.model_dump(mode="json", exclude_none=True)
    if update.status is not None and update.status != TaskStatus.COMPLETED:
        payload["completed_at"] = None
    payload["updated_at"] = utc_now().isoformat()
    return payload


class RestTaskStoreClient(TaskStoreClient):
    """Store client for a PostgREST-style hosted table."""

    def __init__(self, settings: Settings, session_provider: SessionProvider):
        """Initialize the REST store client.

        Args:
            settings: Application settings with the store URL and API key
            session_provider: Source of the current access token
        """
        self._table_url = f"{settings.rest_base_url}/rest/v1/{settings.store_table}"
        self._api_key = settings.store_api_key
        self._timeout = aiohttp.ClientTimeout(total=settings.store_timeout_seconds)
        self._session_provider = session_provider
        self._http: Optional[aiohttp.ClientSession] = None
        logger.info(f"REST task store client initialized for {self._table_url}")

    def _get_http(self) -> aiohttp.ClientSession:
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession(timeout=self._timeout)
        return self._http

    def _headers(self) -> Dict[str, str]:
        token = self._session_provider.access_token
        if not token:
            raise AuthError("Not authenticated", status_code=401)
        return {
            "apikey": self._api_key or "",
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    async def _request(
        self,
        method: str,
        params: Dict[str, str],
        payload: Optional[Any] = None,
    ) -> List[Dict[str, Any]]:
        """Perform one round trip and return the affected rows."""
        headers = self._headers()
        operation = f"{method} {self._table_url}"

        try:
            with TimedOperation(operation, __name__):
                async with self._get_http().request(
                    method, self._table_url, params=params, json=payload, headers=headers
                ) as response:
                    body = await response.json(content_type=None)
                    if response.status >= 400:
                        message = (
                            body.get("message") if isinstance(body, dict) else None
                        ) or f"Store request failed with status {response.status}"
                        logger.warning(f"{operation} -> {response.status}: {message}")
                        raise StoreError(message, status_code=response.status)
        except aiohttp.ClientError as e:
            logger.error(f"{operation} failed: {str(e)}")
            raise StoreError(f"Store request failed: {str(e)}") from e
        except asyncio.TimeoutError as e:
            logger.error(f"{operation} timed out")
            raise StoreError("Store request timed out") from e
        except ValueError as e:
            logger.error(f"{operation} returned a malformed body: {str(e)}")
            raise StoreError("Store returned an invalid response") from e

        if body is None:
            return []
        return body if isinstance(body, list) else [body]

    @staticmethod
    def _single(rows: List[Dict[str, Any]], task_id: str) -> Task:
        if not rows:
            raise StoreError(f"Task {task_id} not found", status_code=404)
        return _parse_row(rows[0])

    async def list_tasks(self, owner_id: str) -> List[Task]:
        rows = await self._request("GET", {
            "select": "*",
            OWNER_COLUMN: f"eq.{owner_id}",
            "order": "due_date.asc",
        })
        logger.debug(f"Fetched {len(rows)} tasks for owner {owner_id}")
        return [_parse_row(row) for row in rows]

    async def create_task(self, form: TaskFormData, owner_id: str) -> Task:
        payload = form.model_dump(mode="json")
        payload[OWNER_COLUMN] = owner_id
        rows = await self._request("POST", {"select": "*"}, [payload])
        if not rows:
            raise StoreError("Store returned no row for the created task")
        task = _parse_row(rows[0])
        logger.info(f"Created task {task.id}: {task.title}")
        return task

    async def update_task(self, task_id: str, update: TaskUpdate) -> Task:
        rows = await self._request(
            "PATCH", {"id": f"eq.{task_id}", "select": "*"}, update_payload(update)
        )
        task = self._single(rows, task_id)
        logger.info(f"Updated task {task_id}: {task.title}")
        return task

    async def complete_task(self, task_id: str) -> Task:
        now = utc_now().isoformat()
        rows = await self._request("PATCH", {"id": f"eq.{task_id}", "select": "*"}, {
            "status": TaskStatus.COMPLETED.value,
            "completed_at": now,
            "updated_at": now,
        })
        task = self._single(rows, task_id)
        logger.info(f"Completed task {task_id}")
        return task

    async def delete_task(self, task_id: str) -> None:
        rows = await self._request("DELETE", {"id": f"eq.{task_id}", "select": "id"})
        if not rows:
            raise StoreError(f"Task {task_id} not found", status_code=404)
        logger.info(f"Deleted task {task_id}")

    async def close(self) -> None:
        if self._http is not None and not self._http.closed:
            await self._http.close()
