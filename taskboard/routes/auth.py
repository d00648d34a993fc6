"""Session routes: sign in, sign up, sign out."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..auth.session import SessionProvider
from ..deps import get_dashboard, get_session_provider
from ..errors import AuthError
from ..schemas import Credentials, SessionResponse, UserResponse
from ..services.dashboard import Dashboard

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_response(session_provider: SessionProvider) -> SessionResponse:
    user = session_provider.user
    return SessionResponse(
        status=session_provider.status.value,
        user=UserResponse(id=user.id, email=user.email) if user else None,
    )


@router.get("/session", response_model=SessionResponse)
async def get_session(
    session_provider: SessionProvider = Depends(get_session_provider),
) -> SessionResponse:
    """Report whether a user is signed in."""
    return _session_response(session_provider)


@router.post("/sign-in", response_model=SessionResponse)
async def sign_in(
    credentials: Credentials,
    session_provider: SessionProvider = Depends(get_session_provider),
    dashboard: Dashboard = Depends(get_dashboard),
) -> SessionResponse:
    """Sign in and load the user's tasks.

    Raises:
        HTTPException: If the credentials are rejected
    """
    try:
        await session_provider.sign_in(credentials.email, credentials.password)
    except AuthError as e:
        logger.warning(f"Sign-in failed for {credentials.email}: {e.message}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)

    dashboard.reset()
    await dashboard.refresh()
    return _session_response(session_provider)


@router.post("/sign-up", response_model=SessionResponse)
async def sign_up(
    credentials: Credentials,
    session_provider: SessionProvider = Depends(get_session_provider),
    dashboard: Dashboard = Depends(get_dashboard),
) -> SessionResponse:
    """Create an account; signs in when the provider returns a session.

    Raises:
        HTTPException: If the provider rejects the sign-up
    """
    try:
        session = await session_provider.sign_up(credentials.email, credentials.password)
    except AuthError as e:
        logger.warning(f"Sign-up failed for {credentials.email}: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    if session is not None:
        dashboard.reset()
        await dashboard.refresh()
    return _session_response(session_provider)


@router.post("/sign-out", response_model=SessionResponse)
async def sign_out(
    session_provider: SessionProvider = Depends(get_session_provider),
    dashboard: Dashboard = Depends(get_dashboard),
) -> SessionResponse:
    """End the session and forget the user's tasks."""
    try:
        await session_provider.sign_out()
    finally:
        dashboard.reset()
    return _session_response(session_provider)
