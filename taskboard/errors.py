"""Error taxonomy for the task manager."""

from typing import Dict, Optional


class TaskboardError(Exception):
    """Base class for task manager errors."""


class ValidationError(TaskboardError):
    """Field-level validation failure raised before any store call."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__(
            "; ".join(f"{field}: {message}" for field, message in self.errors.items())
            or "Validation error"
        )


class StoreError(TaskboardError):
    """A round trip to the task store failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthError(StoreError):
    """No authenticated session, or the auth provider rejected a request."""
