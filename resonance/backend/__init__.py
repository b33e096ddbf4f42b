"""Adapters over the hosted backend: auth, tables and security policies."""

from .auth import AuthGateway, SupabaseAuthGateway
from .client import Backend, create_backend
from .errors import (
    BackendError,
    InvalidInviteError,
    NotAuthenticatedError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from .health import BackendHealthChecker

__all__ = [
    "AuthGateway",
    "SupabaseAuthGateway",
    "Backend",
    "create_backend",
    "BackendError",
    "InvalidInviteError",
    "NotAuthenticatedError",
    "NotFoundError",
    "UnexpectedError",
    "ValidationError",
    "BackendHealthChecker",
]
