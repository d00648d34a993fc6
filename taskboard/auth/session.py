"""Session providers: the authenticated user's identity context.

The provider is created once at application start-up, initialized, and torn
down on sign-out and shutdown. Store clients ask it for the current user and
access token on every round trip.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Optional
from uuid import NAMESPACE_URL, uuid5

import aiohttp
from pydantic import BaseModel

from ..config import Settings
from ..errors import AuthError

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    """Session status enumeration."""
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class User(BaseModel):
    """Authenticated user."""
    id: str
    email: Optional[str] = None


class AuthSession(BaseModel):
    """Tokens and user for a signed-in session."""
    access_token: str
    refresh_token: Optional[str] = None
    user: User


class SessionProvider:
    """Base session provider holding the current session."""

    def __init__(self):
        self._session: Optional[AuthSession] = None
        self._status = SessionStatus.LOADING

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def user(self) -> Optional[User]:
        return self._session.user if self._session else None

    @property
    def access_token(self) -> Optional[str]:
        return self._session.access_token if self._session else None

    def require_user(self) -> User:
        """Return the current user or raise AuthError."""
        if self._session is None:
            raise AuthError("Not authenticated", status_code=401)
        return self._session.user

    async def initialize(self) -> None:
        """Resolve the initial session state."""
        self._status = (
            SessionStatus.AUTHENTICATED if self._session else SessionStatus.UNAUTHENTICATED
        )
        logger.info(f"Session provider initialized: {self._status.value}")

    async def sign_in(self, email: str, password: str) -> AuthSession:
        raise NotImplementedError

    async def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        raise NotImplementedError

    async def sign_out(self) -> None:
        """End the current session."""
        if self._session:
            logger.info(f"Signing out user {self._session.user.id}")
        self._set_session(None)

    async def close(self) -> None:
        """Release provider resources."""
        self._set_session(None)

    def _set_session(self, session: Optional[AuthSession]) -> None:
        self._session = session
        self._status = (
            SessionStatus.AUTHENTICATED if session else SessionStatus.UNAUTHENTICATED
        )


class LocalSessionProvider(SessionProvider):
    """Development provider for the in-memory store.

    Any non-empty email and password sign in. The user id is derived from the
    email so the same account always owns the same tasks.
    """

    async def sign_in(self, email: str, password: str) -> AuthSession:
        if not email.strip() or not password:
            raise AuthError("Invalid login credentials", status_code=400)

        email = email.strip().lower()
        session = AuthSession(
            access_token=f"local-{uuid5(NAMESPACE_URL, 'token:' + email)}",
            user=User(id=str(uuid5(NAMESPACE_URL, 'user:' + email)), email=email),
        )
        self._set_session(session)
        logger.info(f"Signed in local user {session.user.id}")
        return session

    async def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        return await self.sign_in(email, password)


class SupabaseSessionProvider(SessionProvider):
    """Session provider backed by the hosted auth REST API."""

    def __init__(self, settings: Settings):
        super().__init__()
        self._auth_url = f"{settings.rest_base_url}/auth/v1"
        self._api_key = settings.store_api_key
        self._timeout = aiohttp.ClientTimeout(total=settings.store_timeout_seconds)
        self._http: Optional[aiohttp.ClientSession] = None

    def _get_http(self) -> aiohttp.ClientSession:
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession(timeout=self._timeout)
        return self._http

    def _headers(self, bearer: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self._api_key or "",
            "Authorization": f"Bearer {bearer or self._api_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, path: str, payload: Optional[Dict[str, Any]] = None,
                    bearer: Optional[str] = None) -> Dict[str, Any]:
        try:
            async with self._get_http().post(
                f"{self._auth_url}/{path}",
                json=payload or {},
                headers=self._headers(bearer),
            ) as response:
                body = await response.json(content_type=None) if response.status != 204 else {}
                body = body or {}
                if not isinstance(body, dict):
                    raise ValueError(f"expected a JSON object, got {type(body).__name__}")
                if response.status >= 400:
                    message = (
                        body.get("error_description")
                        or body.get("msg")
                        or body.get("message")
                        or f"Auth request failed with status {response.status}"
                    )
                    raise AuthError(message, status_code=response.status)
                return body
        except aiohttp.ClientError as e:
            logger.error(f"Auth request to {path} failed: {str(e)}")
            raise AuthError(f"Auth request failed: {str(e)}") from e
        except asyncio.TimeoutError as e:
            logger.error(f"Auth request to {path} timed out")
            raise AuthError("Auth request timed out") from e
        except ValueError as e:
            logger.error(f"Auth request to {path} returned a malformed body: {str(e)}")
            raise AuthError("Auth service returned an invalid response") from e

    @staticmethod
    def _session_from(body: Dict[str, Any]) -> AuthSession:
        user = body.get("user") or {}
        if not body.get("access_token") or "id" not in user:
            raise AuthError("Auth service returned an incomplete session")
        return AuthSession(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token"),
            user=User(id=str(user["id"]), email=user.get("email")),
        )

    async def sign_in(self, email: str, password: str) -> AuthSession:
        body = await self._post(
            "token?grant_type=password", {"email": email, "password": password}
        )
        session = self._session_from(body)
        self._set_session(session)
        logger.info(f"Signed in user {session.user.id}")
        return session

    async def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        body = await self._post("signup", {"email": email, "password": password})
        if not body.get("access_token"):
            # Email confirmation pending, no session yet
            logger.info(f"Sign-up accepted for {email}, awaiting confirmation")
            return None
        session = self._session_from(body)
        self._set_session(session)
        return session

    async def sign_out(self) -> None:
        token = self.access_token
        try:
            if token:
                await self._post("logout", bearer=token)
        except AuthError as e:
            # The local session ends regardless of the remote outcome
            logger.warning(f"Remote sign-out failed: {e.message}")
        finally:
            await super().sign_out()

    async def close(self) -> None:
        await super().close()
        if self._http is not None and not self._http.closed:
            await self._http.close()
