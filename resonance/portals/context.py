from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Mapping
from urllib.parse import urlencode

from resonance.backend.client import Backend
from resonance.backend.health import BackendHealthChecker
from resonance.core.config import Settings
from resonance.routing.guard import RouteGuard
from resonance.services.auth import AuthService
from resonance.services.clients import ClientService
from resonance.services.tickets import TicketService
from resonance.state.client_scope import ClientScopeStore
from resonance.state.session import SessionStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Flash:
    message: str
    level: str = "info"


@dataclass(slots=True)
class Navigator:
    """Current location of the portal plus one-shot flash messages."""

    path: str = "/"
    query: dict[str, str] = field(default_factory=dict)
    history: list[str] = field(default_factory=list)
    _flashes: list[Flash] = field(default_factory=list)

    @property
    def location(self) -> str:
        if not self.query:
            return self.path
        return f"{self.path}?{urlencode(self.query)}"

    def navigate(self, path: str, query: Mapping[str, str] | None = None, *, replace: bool = False) -> None:
        if not replace:
            self.history.append(self.location)
        self.path = path
        self.query = dict(query or {})
        logger.debug("Navigating to %s", self.location)

    def flash(self, message: str, level: str = "info") -> None:
        self._flashes.append(Flash(message, level))

    def consume_flashes(self) -> list[Flash]:
        flashes, self._flashes = self._flashes, []
        return flashes


@dataclass(slots=True)
class PortalContext:
    """Everything a page needs, passed explicitly instead of held in globals."""

    settings: Settings
    backend: Backend
    session_store: SessionStore
    guard: RouteGuard
    client_service: ClientService
    ticket_service: TicketService
    auth_service: AuthService
    client_scope: ClientScopeStore
    navigator: Navigator
    health: BackendHealthChecker | None = None

    @classmethod
    def build(cls, settings: Settings, backend: Backend, *, navigator: Navigator | None = None) -> "PortalContext":
        session_store = SessionStore(backend.auth)
        client_service = ClientService(backend, invite_ttl=timedelta(days=settings.invite_ttl_days))
        return cls(
            settings=settings,
            backend=backend,
            session_store=session_store,
            guard=RouteGuard(session_store, sign_in_path=settings.sign_in_path),
            client_service=client_service,
            ticket_service=TicketService(backend),
            auth_service=AuthService(backend),
            client_scope=ClientScopeStore(client_service, session_store),
            navigator=navigator or Navigator(),
            health=BackendHealthChecker(
                settings.supabase_url,
                settings.supabase_anon_key,
                timeout=settings.health_check_timeout,
            ),
        )

    def start(self) -> None:
        self.session_store.start()

    def close(self) -> None:
        self.guard.close()
        self.session_store.stop()
