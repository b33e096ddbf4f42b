from __future__ import annotations

import logging

from resonance.domain.models import Client
from resonance.services.clients import ClientService

from .session import AuthEvent, SessionStore

logger = logging.getLogger(__name__)


class ClientScopeStore:
    """Clients visible to the current identity and the one being worked on."""

    def __init__(self, client_service: ClientService, session_store: SessionStore | None = None) -> None:
        self._service = client_service
        self._clients: list[Client] = []
        self._active: Client | None = None
        self._loading = True
        self._loaded = False
        if session_store is not None:
            session_store.subscribe(self._on_session_event)

    @property
    def clients(self) -> list[Client]:
        return list(self._clients)

    @property
    def active_client(self) -> Client | None:
        return self._active

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def has_clients(self) -> bool:
        return bool(self._clients)

    def load(self) -> None:
        """Read the client list once; later calls are no-ops."""

        if self._loaded:
            return
        self._loaded = True
        self._loading = True
        try:
            result = self._service.list_clients()
            if not result.ok:
                logger.error("Error loading clients: %s", result.error)
            self._clients = list(result.data or []) if result.ok else []
        except Exception:
            logger.exception("Error loading clients")
            self._clients = []
        finally:
            self._loading = False
        self._active = self._resolve_active()

    def reload(self) -> None:
        self._loaded = False
        self.load()

    def _resolve_active(self) -> Client | None:
        if not self._clients:
            return None
        if self._active is not None:
            current = self._active.id
            return next((c for c in self._clients if c.id == current), self._clients[0])
        return self._clients[0]

    def set_active_client(self, client_id: str) -> Client | None:
        for client in self._clients:
            if client.id == client_id:
                self._active = client
                return client
        logger.warning("Ignoring unknown client %s", client_id)
        return None

    def reset(self) -> None:
        self._clients = []
        self._active = None
        self._loading = True
        self._loaded = False

    def _on_session_event(self, event: str, _store: SessionStore) -> None:
        if event == AuthEvent.SIGNED_OUT.value:
            self.reset()
