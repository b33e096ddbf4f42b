from __future__ import annotations

import pytest

from resonance.pages import (
    AddTicketPage,
    ClientPage,
    DashboardPage,
    InviteSignUpPage,
    NotFoundPage,
    SignUpPage,
    TicketDetailPage,
)
from resonance.portals.admin import ADMIN_PORTAL
from resonance.portals.client import CLIENT_PORTAL
from resonance.routing.router import Route, Router, split_path


def test_split_path_drops_query_and_fragment():
    assert split_path("/tickets/42/?tab=1#top") == ("tickets", "42")
    assert split_path("/") == ()


def test_static_segment_outranks_parameter_regardless_of_order():
    router = Router([Route("/tickets/:id", TicketDetailPage), Route("/tickets/new", AddTicketPage)], NotFoundPage)

    assert router.resolve("/tickets/new").route.page is AddTicketPage
    match = router.resolve("/tickets/abc")
    assert match.route.page is TicketDetailPage
    assert match.params == {"id": "abc"}


def test_unknown_path_falls_back_to_unguarded_catch_all():
    router = Router([Route("/", DashboardPage)], NotFoundPage)

    match = router.resolve("/nowhere/at/all")

    assert match.is_not_found
    assert match.route.page is NotFoundPage
    assert not match.route.guarded


@pytest.mark.parametrize(
    "path",
    ["/dashboard", "/clients", "/clients/c-1", "/tickets", "/tickets/t-1"],
)
def test_admin_dashboard_routes_use_layout(path):
    match = ADMIN_PORTAL.router.resolve(path)

    assert match.route.layout == "dashboard"
    assert match.route.guarded


def test_admin_ticket_detail_is_editable_and_add_client_has_no_layout():
    detail = ADMIN_PORTAL.router.resolve("/tickets/t-1").route.page
    assert detail.func is TicketDetailPage
    assert detail.keywords == {"editable": True}
    assert ADMIN_PORTAL.router.resolve("/add-client").route.layout is None
    assert ADMIN_PORTAL.router.resolve("/auth/sign-up").route.page is SignUpPage


def test_client_portal_routes():
    router = CLIENT_PORTAL.router

    assert router.resolve("/tickets/new").route.page is AddTicketPage
    assert router.resolve("/tickets/t-9").route.page is TicketDetailPage
    assert router.resolve("/clients/c-1").route.page is ClientPage
    assert router.resolve("/auth/sign-up").route.page is InviteSignUpPage
    assert not router.resolve("/auth/callback").route.guarded
    assert router.resolve("/dashboard").is_not_found
