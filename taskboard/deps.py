"""Dependency injection helpers for FastAPI."""

from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status

from .auth.session import (
    LocalSessionProvider,
    SessionProvider,
    SupabaseSessionProvider,
    User,
)
from .config import Settings, settings
from .services.dashboard import Dashboard
from .services.memory_store import InMemoryTaskStoreClient
from .services.notifications import NotificationCenter
from .services.store_client import RestTaskStoreClient, TaskStoreClient
from .services.task_state import TaskStateContainer


@lru_cache()
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return settings


def build_session_provider(settings: Settings) -> SessionProvider:
    """Create the session provider matching the store backend."""
    if settings.store_backend == "rest":
        return SupabaseSessionProvider(settings)
    return LocalSessionProvider()


def build_store_client(settings: Settings, session_provider: SessionProvider) -> TaskStoreClient:
    """Create the task store client for the configured backend."""
    if settings.store_backend == "rest":
        return RestTaskStoreClient(settings, session_provider)
    return InMemoryTaskStoreClient(session_provider)


def build_dashboard(
    settings: Settings,
    store: TaskStoreClient,
    session_provider: SessionProvider,
) -> Dashboard:
    """Create the dashboard with a fresh task collection."""
    container = TaskStateContainer(store, session_provider)
    notifications = NotificationCenter(timeout_seconds=settings.notification_timeout_seconds)
    return Dashboard(container, notifications)


def get_session_provider(request: Request) -> SessionProvider:
    """Get the session provider created at start-up."""
    return request.app.state.session_provider


def get_dashboard(request: Request) -> Dashboard:
    """Get the dashboard created at start-up."""
    return request.app.state.dashboard


def require_user(
    session_provider: SessionProvider = Depends(get_session_provider),
) -> User:
    """Reject requests without an authenticated session."""
    user = session_provider.user
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user
