from __future__ import annotations

import logging

from resonance.domain.models import Client, ContactInfo, NewClient, Ticket

from .base import Page, missing_fields, required_message

logger = logging.getLogger(__name__)


class ClientsListPage(Page):
    title = "Clients"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.clients: list[Client] = []

    def load(self) -> None:
        self.loading = True
        result = self.call(self.context.client_service.list_clients)
        if result.ok:
            self.clients = list(result.data or [])
        else:
            self.error = result.error_message
        self.loading = False


class ClientPage(Page):
    """Client details with the client's tickets."""

    title = "Client Details"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.client: Client | None = None
        self.tickets: list[Ticket] = []

    @property
    def client_id(self) -> str:
        return self.params.get("id", "")

    def load(self) -> None:
        self.loading = True
        self.error = None
        result = self.call(self.context.client_service.get_client, self.client_id)
        if not result.ok:
            self.error = result.error_message
            self.loading = False
            return
        self.client = result.data

        tickets = self.call(self.context.ticket_service.list_client_tickets, self.client_id)
        if tickets.ok:
            self.tickets = list(tickets.data or [])
        else:
            self.error = tickets.error_message
        self.loading = False


class AddClientPage(Page):
    title = "Add New Client"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.submitting = False
        self.warning: str | None = None

    def clear_messages(self) -> None:
        self.error = None
        self.warning = None

    def submit(
        self,
        *,
        name: str,
        first_name: str,
        last_name: str,
        email: str,
        phone: str = "",
        notes: str = "",
    ) -> bool:
        self.clear_messages()
        missing = missing_fields(name=name, first_name=first_name, last_name=last_name, email=email)
        if missing:
            self.error = required_message(missing)
            return False

        new_client = NewClient(
            name=name.strip(),
            contact_info=ContactInfo(
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                email=email.strip(),
                phone=phone.strip() or None,
            ),
            notes=notes.strip() or None,
        )
        self.submitting = True
        try:
            result = self.call(self.context.client_service.create_client_with_invite, new_client)
        finally:
            self.submitting = False

        if not result.ok or result.data is None:
            logger.error("Error adding client: %s", result.error)
            self.error = result.error_message
            return False

        self.warning = result.warning
        scope = self.context.client_scope
        if scope.is_loaded:
            scope.reload()
        if result.warning:
            self.context.navigator.flash(result.warning, level="warning")
        self.navigate(f"/clients/{result.data.id}")
        return True
