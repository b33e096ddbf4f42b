from __future__ import annotations

from functools import partial

from resonance.pages import (
    AddClientPage,
    AuthCallbackPage,
    ClientPage,
    ClientsListPage,
    DashboardPage,
    HomePage,
    NotFoundPage,
    SignInPage,
    SignUpPage,
    TicketDetailPage,
    TicketsListPage,
)
from resonance.routing.router import Route, Router

from .definition import NavLink, PortalDefinition

DASHBOARD_LAYOUT = "dashboard"

ROUTES: tuple[Route, ...] = (
    Route("/", HomePage),
    Route("/dashboard", DashboardPage, layout=DASHBOARD_LAYOUT),
    Route("/clients", ClientsListPage, layout=DASHBOARD_LAYOUT),
    Route("/clients/:id", ClientPage, layout=DASHBOARD_LAYOUT),
    Route("/add-client", AddClientPage),
    Route("/tickets", TicketsListPage, layout=DASHBOARD_LAYOUT),
    Route("/tickets/:id", partial(TicketDetailPage, editable=True), layout=DASHBOARD_LAYOUT),
    Route("/auth/sign-in", SignInPage, guarded=False),
    Route("/auth/sign-up", SignUpPage, guarded=False),
    Route("/auth/callback", AuthCallbackPage, guarded=False),
)

ADMIN_PORTAL = PortalDefinition(
    name="admin",
    title="Resonance Admin",
    router=Router(ROUTES, NotFoundPage),
    nav_links=(
        NavLink("Dashboard", "/dashboard"),
        NavLink("Clients", "/clients"),
        NavLink("Tickets", "/tickets"),
        NavLink("Add Client", "/add-client"),
    ),
    layouts=frozenset({DASHBOARD_LAYOUT}),
)
