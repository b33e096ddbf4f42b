from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from opentelemetry import trace

from resonance.backend.client import Backend
from resonance.backend.errors import (
    BackendError,
    NotAuthenticatedError,
    NotFoundError,
    ValidationError,
)
from resonance.domain.models import (
    AuthUser,
    Message,
    NewTicket,
    Role,
    Ticket,
    TicketPriority,
    TicketSeverity,
    TicketStatus,
    TicketType,
)

from .results import Clock, Result, utcnow

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Fields that may change once a ticket exists, with their value types.
UPDATABLE_FIELDS: Mapping[str, type[Enum] | None] = {
    "status": TicketStatus,
    "priority": TicketPriority,
    "severity": TicketSeverity,
    "assigned_agent_id": None,
}

TICKET_NOT_FOUND = "Ticket not found or you don't have permission to update it"
REFETCH_FAILED = "Update succeeded but failed to fetch updated ticket"


class TicketServiceError(BackendError):
    """Base error for ticket service issues."""


@dataclass(slots=True)
class TicketService:
    """Ticket, message and ticket-type operations for both portals."""

    backend: Backend
    clock: Clock = field(default=utcnow)

    def list_tickets(self) -> Result[list[Ticket]]:
        """Newest first; which rows come back is decided by row-level security."""

        try:
            return Result.success(self.backend.tickets.list_all())
        except BackendError as exc:
            return Result.failure(exc)

    def list_client_tickets(self, client_id: str) -> Result[list[Ticket]]:
        try:
            return Result.success(self.backend.tickets.list_by_client(client_id))
        except BackendError as exc:
            return Result.failure(exc)

    def get_ticket(self, ticket_id: str) -> Result[Ticket]:
        try:
            ticket = self.backend.tickets.find_by_id(ticket_id)
        except BackendError as exc:
            return Result.failure(exc)
        if ticket is None:
            return Result.failure(NotFoundError(f"Ticket {ticket_id} not found"))
        return Result.success(ticket)

    def list_ticket_types(self) -> Result[list[TicketType]]:
        try:
            return Result.success(self.backend.ticket_types.list_all())
        except BackendError as exc:
            return Result.failure(exc)

    def create_ticket(self, new_ticket: NewTicket, *, client_id: str | None = None) -> Result[Ticket]:
        """Open a ticket as the signed-in user.

        The ticket belongs to the requester's tenant. ``client_id`` only takes
        effect for administrators.
        """

        user = self._require_user()
        if isinstance(user, Result):
            return user

        tenant = user.client_id
        if client_id and client_id != tenant:
            if user.role == Role.ADMIN:
                tenant = client_id
            else:
                logger.warning("Ignoring client override %s from non-admin user %s", client_id, user.user_id)

        severity = new_ticket.severity or TicketSeverity.NONE
        payload: dict[str, Any] = {
            "ticket_type_id": new_ticket.ticket_type_id,
            "title": new_ticket.title,
            "description": new_ticket.description,
            "priority": TicketPriority(new_ticket.priority).value,
            "severity": TicketSeverity(severity).value,
            "status": TicketStatus.NEW.value,
            "requester_id": user.user_id,
            "client_id": tenant,
        }
        if new_ticket.tags:
            payload["tags"] = list(new_ticket.tags)
        if new_ticket.custom_fields:
            payload["custom_fields"] = dict(new_ticket.custom_fields)

        try:
            ticket = self.backend.tickets.insert(payload)
        except BackendError as exc:
            return Result.failure(exc)
        logger.info("Ticket %s created by %s", ticket.id, user.user_id)
        return Result.success(ticket)

    def update_ticket(self, ticket_id: str, updates: Mapping[str, Any]) -> Result[Ticket]:
        """Apply ``updates`` and return the ticket as re-read from the backend."""

        try:
            fields = _normalise_updates(updates)
        except ValidationError as exc:
            return Result.failure(exc)

        with tracer.start_as_current_span("tickets.update") as span:
            span.set_attribute("ticket.id", ticket_id)
            try:
                existing = self.backend.tickets.find_by_id(ticket_id)
            except BackendError as exc:
                return Result.failure(exc)
            if existing is None:
                return Result.failure(NotFoundError(TICKET_NOT_FOUND))

            fields["updated_at"] = self.clock().isoformat()
            try:
                self.backend.tickets.update_fields(ticket_id, fields)
            except BackendError as exc:
                return Result.failure(exc)

            try:
                updated = self.backend.tickets.find_by_id(ticket_id)
            except BackendError as exc:
                logger.warning("Ticket %s updated but re-read failed: %s", ticket_id, exc)
                return Result.failure(TicketServiceError(REFETCH_FAILED))
            if updated is None:
                return Result.failure(TicketServiceError(REFETCH_FAILED))
            return Result.success(updated)

    def list_messages(self, ticket_id: str) -> Result[list[Message]]:
        try:
            messages = self.backend.messages.list_by_ticket(ticket_id)
        except BackendError as exc:
            return Result.failure(exc)
        return Result.success(messages)

    def send_message(self, ticket_id: str, content: str) -> Result[Message]:
        text = content.strip()
        if not text:
            return Result.failure(ValidationError("Message content is required"))

        user = self._require_user()
        if isinstance(user, Result):
            return user

        payload = {"ticket_id": ticket_id, "author_id": user.user_id, "content": text}
        try:
            return Result.success(self.backend.messages.insert(payload))
        except BackendError as exc:
            return Result.failure(exc)

    def _require_user(self) -> AuthUser | Result[Any]:
        try:
            user = self.backend.auth.current_user()
        except BackendError as exc:
            return Result.failure(exc)
        if user is None:
            return Result.failure(NotAuthenticatedError("User not authenticated"))
        return user


def _normalise_updates(updates: Mapping[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(updates) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")

    fields: dict[str, Any] = {}
    for name, value in updates.items():
        enum_type = UPDATABLE_FIELDS[name]
        if value is None or value == "":
            if name in ("status", "priority"):
                continue
            fields[name] = None
            continue
        if enum_type is None:
            fields[name] = str(value).strip() or None
            continue
        try:
            fields[name] = enum_type(value).value
        except ValueError as exc:
            raise ValidationError(f"Invalid {name}: {value}") from exc
    return fields
