from __future__ import annotations

import logging
from typing import Any, Mapping

from resonance.backend.policies import Command, is_allowed
from resonance.domain.models import (
    Message,
    NewTicket,
    Ticket,
    TicketPriority,
    TicketSeverity,
    TicketType,
)
from resonance.portals.context import PortalContext

from .base import Page, missing_fields, required_message

logger = logging.getLogger(__name__)


class TicketsListPage(Page):
    title = "Tickets"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.tickets: list[Ticket] = []

    def load(self) -> None:
        self.loading = True
        self.error = None
        result = self.call(self.context.ticket_service.list_tickets)
        if result.ok:
            self.tickets = list(result.data or [])
        else:
            self.error = result.error_message
        self.loading = False


class TicketDetailPage(Page):
    """A ticket with its conversation; staff may also change its fields."""

    title = "Ticket Details"

    def __init__(
        self,
        context: PortalContext,
        params: Mapping[str, str] | None = None,
        query: Mapping[str, str] | None = None,
        *,
        editable: bool = False,
    ) -> None:
        super().__init__(context, params, query)
        self.editable = editable
        self.ticket: Ticket | None = None
        self.messages: list[Message] = []
        self.ticket_types: list[TicketType] = []
        self.form_values: dict[str, Any] = {}
        self.draft = ""
        self.updating = False
        self.sending = False
        self.update_error: str | None = None
        self.message_error: str | None = None

    @property
    def ticket_id(self) -> str:
        return self.params.get("id", "")

    @property
    def can_update(self) -> bool:
        return self.editable and is_allowed(self.context.session_store.role, "tickets", Command.UPDATE)

    @property
    def ticket_type_name(self) -> str | None:
        if self.ticket is None:
            return None
        if self.ticket.ticket_type_name:
            return self.ticket.ticket_type_name
        return next((t.name for t in self.ticket_types if t.id == self.ticket.ticket_type_id), None)

    def load(self) -> None:
        self.loading = True
        self.error = None
        result = self.call(self.context.ticket_service.get_ticket, self.ticket_id)
        if not result.ok:
            self.error = result.error_message
            self.loading = False
            return
        self.ticket = result.data
        self._seed_form()

        self._load_messages()
        types = self.call(self.context.ticket_service.list_ticket_types)
        if types.ok:
            self.ticket_types = list(types.data or [])
        else:
            logger.warning("Could not load ticket types: %s", types.error)
        self.loading = False

    def _load_messages(self) -> None:
        messages = self.call(self.context.ticket_service.list_messages, self.ticket_id)
        if messages.ok:
            self.messages = list(messages.data or [])
        else:
            self.message_error = messages.error_message

    def _seed_form(self) -> None:
        if self.ticket is None:
            return
        self.form_values = {
            "status": self.ticket.status.value,
            "priority": self.ticket.priority.value,
            "severity": self.ticket.severity.value if self.ticket.severity else None,
            "assigned_agent_id": self.ticket.assigned_agent_id or "",
        }

    def update_ticket(self, values: Mapping[str, Any]) -> bool:
        if not self.can_update:
            self.update_error = "You don't have permission to update this ticket"
            return False

        self.updating = True
        self.update_error = None
        try:
            result = self.call(self.context.ticket_service.update_ticket, self.ticket_id, dict(values))
        finally:
            self.updating = False
        if not result.ok:
            self.update_error = result.error_message
            return False
        self.ticket = result.data
        self._seed_form()
        return True

    def send_message(self, content: str) -> bool:
        self.draft = content
        if not content.strip():
            self.message_error = "Message content is required"
            return False

        self.sending = True
        self.message_error = None
        try:
            result = self.call(self.context.ticket_service.send_message, self.ticket_id, content)
        finally:
            self.sending = False
        if not result.ok:
            self.message_error = result.error_message
            return False
        self.draft = ""
        self._load_messages()
        return True


class AddTicketPage(Page):
    title = "Create New Ticket"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.ticket_types: list[TicketType] = []
        self.types_loading = False
        self.submitting = False

    @property
    def client_override(self) -> str | None:
        return self.query.get("client") or None

    def load(self) -> None:
        self.types_loading = True
        result = self.call(self.context.ticket_service.list_ticket_types)
        if result.ok:
            self.ticket_types = list(result.data or [])
        else:
            self.error = result.error_message
        self.types_loading = False

    def submit(
        self,
        *,
        ticket_type_id: int | str | None,
        title: str,
        description: str,
        priority: TicketPriority | str = TicketPriority.NORMAL,
        severity: TicketSeverity | str | None = TicketSeverity.NONE,
        tags: list[str] | None = None,
        custom_fields: Mapping[str, Any] | None = None,
    ) -> bool:
        missing = missing_fields(ticket_type=ticket_type_id, title=title, description=description)
        if missing:
            self.error = required_message(missing)
            return False
        try:
            type_id = int(ticket_type_id)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            self.error = "Ticket type is invalid"
            return False

        new_ticket = NewTicket(
            ticket_type_id=type_id,
            title=title.strip(),
            description=description.strip(),
            priority=TicketPriority(priority),
            severity=TicketSeverity(severity) if severity else TicketSeverity.NONE,
            tags=tags or None,
            custom_fields=dict(custom_fields) if custom_fields else None,
        )
        self.submitting = True
        self.error = None
        try:
            result = self.call(
                self.context.ticket_service.create_ticket,
                new_ticket,
                client_id=self.client_override,
            )
        finally:
            self.submitting = False
        if not result.ok or result.data is None:
            self.error = result.error_message
            return False
        self.navigate(f"/tickets/{result.data.id}")
        return True
