"""Application state shared by the pages of one portal session."""

from .client_scope import ClientScopeStore
from .session import AuthEvent, SessionStore

__all__ = ["AuthEvent", "ClientScopeStore", "SessionStore"]
