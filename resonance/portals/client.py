from __future__ import annotations

from resonance.pages import (
    AddClientPage,
    AddTicketPage,
    AuthCallbackPage,
    ClientPage,
    HomePage,
    InviteSignUpPage,
    NotFoundPage,
    ProtectedPage,
    SignInPage,
    TicketDetailPage,
    TicketsListPage,
)
from resonance.routing.router import Route, Router

from .definition import NavLink, PortalDefinition

ROUTES: tuple[Route, ...] = (
    Route("/", HomePage),
    Route("/protected", ProtectedPage),
    Route("/add-client", AddClientPage),
    Route("/clients/:id", ClientPage),
    Route("/tickets", TicketsListPage),
    Route("/tickets/new", AddTicketPage),
    Route("/tickets/:id", TicketDetailPage),
    Route("/auth/sign-in", SignInPage, guarded=False),
    Route("/auth/sign-up", InviteSignUpPage, guarded=False),
    Route("/auth/callback", AuthCallbackPage, guarded=False),
)

CLIENT_PORTAL = PortalDefinition(
    name="client",
    title="Resonance Support",
    router=Router(ROUTES, NotFoundPage),
    nav_links=(
        NavLink("Home", "/"),
        NavLink("My Tickets", "/tickets"),
        NavLink("New Ticket", "/tickets/new"),
    ),
)
