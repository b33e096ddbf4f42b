from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from opentelemetry import trace

from resonance.backend.client import Backend
from resonance.backend.errors import BackendError, NotFoundError
from resonance.domain.models import Client, NewClient, Role

from .results import Clock, Result, utcnow

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

INVITE_WARNING = "Client created but invite failed to send"


@dataclass(slots=True)
class ClientService:
    """Reads and writes tenant organisations."""

    backend: Backend
    invite_ttl: timedelta = timedelta(days=7)
    clock: Clock = field(default=utcnow)

    def list_clients(self) -> Result[list[Client]]:
        try:
            return Result.success(self.backend.clients.list_all())
        except BackendError as exc:
            return Result.failure(exc)

    def get_client(self, client_id: str) -> Result[Client]:
        try:
            client = self.backend.clients.find_by_id(client_id)
        except BackendError as exc:
            return Result.failure(exc)
        if client is None:
            return Result.failure(NotFoundError(f"Client {client_id} not found"))
        return Result.success(client)

    def create_client(self, new_client: NewClient) -> Result[Client]:
        payload = {
            "name": new_client.name,
            "contact_info": new_client.contact_info.to_payload(),
            "notes": new_client.notes or None,
        }
        try:
            client = self.backend.clients.insert(payload)
        except BackendError as exc:
            logger.warning("Creating client %r failed: %s", new_client.name, exc)
            return Result.failure(exc)
        logger.info("Created client %s", client.id)
        return Result.success(client)

    def create_client_with_invite(self, new_client: NewClient) -> Result[Client]:
        """Create a client, then invite its primary contact.

        A failed invite does not undo the client: the result carries the client
        and a warning instead of an error.
        """

        with tracer.start_as_current_span("clients.create_with_invite"):
            created = self.create_client(new_client)
            if not created.ok or created.data is None:
                return created

            client = created.data
            invite = {
                "client_id": client.id,
                "email": new_client.contact_info.email,
                "role": Role.CLIENT_CONTACT.value,
                "expires_at": (self.clock() + self.invite_ttl).isoformat(),
            }
            try:
                self.backend.invites.insert(invite)
            except BackendError as exc:
                logger.warning("Client %s created but invite failed: %s", client.id, exc)
                return Result.success(client, warning=INVITE_WARNING)
            return Result.success(client)
