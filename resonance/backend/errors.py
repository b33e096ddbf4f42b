from __future__ import annotations

from typing import Any

from postgrest.exceptions import APIError
from supabase_auth.errors import AuthError


class BackendError(RuntimeError):
    """Failure reported by the hosted backend or raised while talking to it."""

    def __init__(self, message: str, *, code: str | None = None, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def __str__(self) -> str:
        prefix = f"[{self.code}] " if self.code else ""
        return f"{prefix}{self.message}"


class NotFoundError(BackendError):
    """Raised when a row is missing or hidden by row-level security."""


class NotAuthenticatedError(BackendError):
    """Raised when an operation needs a signed-in user and there is none."""


class InvalidInviteError(BackendError):
    """Raised when no unused, unexpired invite matches an email."""


class ValidationError(BackendError):
    """Raised for input rejected before any backend call is made."""


class UnexpectedError(BackendError):
    """Stand-in for local failures converted at a page boundary."""


def from_postgrest(exc: APIError) -> BackendError:
    """Translate a PostgREST error into a :class:`BackendError`."""

    message = exc.message or "Request to the backend failed"
    return BackendError(message, code=exc.code, details=exc.details)


def from_auth(exc: AuthError) -> BackendError:
    """Translate an auth-server error into a :class:`BackendError`."""

    code = getattr(exc, "code", None) or getattr(exc, "status", None)
    return BackendError(exc.message or str(exc), code=None if code is None else str(code))
