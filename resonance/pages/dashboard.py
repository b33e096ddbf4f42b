from __future__ import annotations

from resonance.domain.models import Client, Ticket, TicketPriority
from resonance.portals.context import PortalContext

from .base import Page

ADD_CLIENT_PATH = "/add-client"


class DashboardLayout:
    """Sidebar shell of the admin dashboard with the active-client picker."""

    def __init__(self, context: PortalContext) -> None:
        self.context = context

    @property
    def clients(self) -> list[Client]:
        return self.context.client_scope.clients

    @property
    def active_client(self) -> Client | None:
        return self.context.client_scope.active_client

    @property
    def is_loading(self) -> bool:
        return self.context.client_scope.is_loading

    def gate(self) -> bool:
        """Return whether the routed page may render inside the layout.

        Once loading settles with no clients the user is sent to the
        add-client page instead of an empty dashboard.
        """

        scope = self.context.client_scope
        scope.load()
        if scope.is_loading:
            return False
        if not scope.has_clients:
            self.context.navigator.navigate(ADD_CLIENT_PATH, replace=True)
            return False
        return True

    def select_client(self, client_id: str) -> None:
        self.context.client_scope.set_active_client(client_id)


class DashboardPage(Page):
    """Ticket counters for the active client."""

    title = "Dashboard"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.tickets: list[Ticket] = []
        self.client: Client | None = None

    def load(self) -> None:
        self.client = self.context.client_scope.active_client
        if self.client is None:
            return
        self.loading = True
        result = self.call(self.context.ticket_service.list_client_tickets, self.client.id)
        if result.ok:
            self.tickets = list(result.data or [])
        else:
            self.error = result.error_message
        self.loading = False

    @property
    def total_tickets(self) -> int:
        return len(self.tickets)

    @property
    def open_tickets(self) -> int:
        return sum(1 for ticket in self.tickets if ticket.is_open)

    @property
    def urgent_tickets(self) -> int:
        return sum(1 for ticket in self.tickets if ticket.priority == TicketPriority.URGENT)
