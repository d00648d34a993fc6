"""Dashboard notification routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from ..deps import get_dashboard
from ..services.dashboard import Dashboard
from ..services.notifications import Notification

router = APIRouter()


@router.get("/", response_model=Optional[Notification])
async def get_notification(dashboard: Dashboard = Depends(get_dashboard)) -> Optional[Notification]:
    """Return the current notification, or null once it has expired."""
    return dashboard.notifications.current


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def dismiss_notification(dashboard: Dashboard = Depends(get_dashboard)) -> Response:
    """Dismiss the current notification."""
    dashboard.notifications.dismiss()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
