"""Declarative routing and the session guard."""

from .guard import GuardDecision, GuardState, RouteGuard
from .router import Route, RouteMatch, Router

__all__ = ["GuardDecision", "GuardState", "RouteGuard", "Route", "RouteMatch", "Router"]
