from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import partial
from unittest.mock import MagicMock

from resonance.domain.models import Role, TicketPriority, TicketStatus
from resonance.pages import (
    GENERIC_FAILURE,
    AddClientPage,
    AddTicketPage,
    AuthCallbackPage,
    ClientPage,
    DashboardLayout,
    DashboardPage,
    HomePage,
    InviteSignUpPage,
    SignInPage,
    TicketDetailPage,
    has_callback_tokens,
    parse_fragment,
)
from resonance.pages.auth import NO_INVITATION
from resonance.services.clients import INVITE_WARNING


def test_sign_in_page_redirects_existing_session_without_form(context, fake_auth):
    fake_auth.login_as(Role.ADMIN)
    context.start()
    context.navigator.navigate("/auth/sign-in")
    page = SignInPage(context)

    page.mount()

    assert page.redirected
    assert not page.should_render_form
    assert context.navigator.path == "/"
    assert "sign_in_with_password" not in fake_auth.calls


def test_sign_in_page_validates_and_navigates_home(context, fake_auth):
    context.start()
    page = SignInPage(context)
    page.mount()

    assert not page.submit("", "")
    assert page.error == "Email, password are required"

    assert page.submit("admin@example.com", "pw")
    assert page.error is None
    assert not page.submitting
    assert context.navigator.path == "/"
    assert context.session_store.session is not None


def test_sign_in_page_shows_backend_message(context, fake_auth):
    context.start()
    fake_auth.fail("sign_in_with_password", "Invalid login credentials")
    page = SignInPage(context)

    assert not page.submit("admin@example.com", "bad")
    assert page.error == "Invalid login credentials"


def test_unexpected_exception_becomes_generic_failure(context):
    context.auth_service = MagicMock()
    context.auth_service.sign_in.side_effect = KeyError("boom")
    page = SignInPage(context)

    assert not page.submit("admin@example.com", "pw")
    assert page.error == GENERIC_FAILURE


def test_dashboard_layout_sends_empty_tenants_to_add_client(context, fake_auth):
    fake_auth.login_as(Role.ADMIN)
    context.start()
    context.navigator.navigate("/dashboard")
    layout = DashboardLayout(context)

    assert layout.gate() is False
    assert context.navigator.path == "/add-client"


def test_dashboard_layout_redirects_when_reload_comes_back_empty(context, backend, fake_auth):
    fake_auth.login_as(Role.ADMIN)
    backend.clients.add("Acme")
    context.start()
    context.navigator.navigate("/dashboard")
    assert DashboardLayout(context).gate()

    backend.clients.rows.clear()
    context.client_scope.reload()

    assert DashboardLayout(context).gate() is False
    assert context.navigator.path == "/add-client"


def test_dashboard_counts_tickets_for_active_client(context, backend, fake_auth):
    fake_auth.login_as(Role.ADMIN)
    client = backend.clients.add("Acme")
    backend.tickets.add("New one", client.id)
    backend.tickets.add("Open urgent", client.id, status="OPEN", priority="URGENT")
    backend.tickets.add("Closed", client.id, status="CLOSED")
    backend.tickets.add("Elsewhere", "client-other")
    context.start()

    assert DashboardLayout(context).gate()
    page = DashboardPage(context)
    page.mount()

    assert page.client.id == client.id
    assert (page.total_tickets, page.open_tickets, page.urgent_tickets) == (3, 2, 1)


def test_add_client_flashes_invite_warning(context, backend, fake_auth):
    fake_auth.login_as(Role.ADMIN)
    context.start()
    backend.invites.fail("insert")
    context.client_scope.load()
    page = AddClientPage(context)

    assert page.submit(name="Acme", first_name="Ada", last_name="L", email="ada@acme.test")

    created = backend.clients.rows[0]
    assert context.navigator.path == f"/clients/{created.id}"
    assert [flash.message for flash in context.navigator.consume_flashes()] == [INVITE_WARNING]
    assert context.client_scope.active_client.id == created.id


def test_add_client_requires_contact_fields(context, backend):
    page = AddClientPage(context)

    assert not page.submit(name="Acme", first_name="", last_name="", email="")
    assert page.error == "First name, last name, email are required"
    assert backend.clients.calls == []


def test_client_page_loads_client_and_tickets(context, backend):
    client = backend.clients.add("Acme")
    backend.tickets.add("Printer", client.id)
    page = ClientPage(context, {"id": client.id})

    page.mount()

    assert not page.loading
    assert page.client.name == "Acme"
    assert [ticket.title for ticket in page.tickets] == ["Printer"]


def test_ticket_detail_hides_update_form_from_contacts(context, backend, fake_auth):
    fake_auth.login_as(Role.CLIENT_CONTACT, client_id="client-1")
    context.start()
    ticket = backend.tickets.add("Printer", "client-1")
    page = TicketDetailPage(context, {"id": ticket.id}, editable=True)
    page.mount()

    assert not page.can_update
    assert not page.update_ticket({"status": "CLOSED"})
    assert "update_fields" not in backend.tickets.calls


def test_ticket_detail_updates_and_sends_messages(context, backend, fake_auth):
    fake_auth.login_as(Role.AGENT, user_id="agent-1")
    context.start()
    ticket = backend.tickets.add("Printer", "client-1")
    page = partial(TicketDetailPage, editable=True)(context, {"id": ticket.id})
    page.mount()

    assert page.can_update
    assert page.ticket_type_name == "Bug"
    assert page.form_values["status"] == "NEW"

    assert page.update_ticket({"status": "OPEN", "priority": "HIGH"})
    assert page.ticket.status == TicketStatus.OPEN
    assert page.form_values["priority"] == TicketPriority.HIGH.value

    assert page.send_message("On my way")
    assert page.draft == ""
    assert [message.content for message in page.messages] == ["On my way"]


def test_ticket_detail_keeps_draft_when_send_fails(context, backend, fake_auth):
    fake_auth.login_as(Role.AGENT)
    ticket = backend.tickets.add("Printer", "client-1")
    backend.messages.fail("insert", "permission denied")
    page = TicketDetailPage(context, {"id": ticket.id})
    page.mount()

    assert not page.send_message("Hello")
    assert page.draft == "Hello"
    assert page.message_error == "permission denied"
    assert not page.sending


def test_add_ticket_uses_client_override_and_navigates(context, backend, fake_auth):
    fake_auth.login_as(Role.ADMIN, client_id=None)
    page = AddTicketPage(context, query={"client": "client-5"})
    page.mount()

    assert [ticket_type.name for ticket_type in page.ticket_types] == ["Bug", "Feature Request"]
    assert not page.submit(ticket_type_id=None, title="", description="")
    assert page.error == "Ticket type, title, description are required"

    assert page.submit(ticket_type_id="2", title="Dark mode", description="Please", priority="LOW")
    created = backend.tickets.rows[0]
    assert created.client_id == "client-5"
    assert created.ticket_type_id == 2
    assert context.navigator.path == f"/tickets/{created.id}"


def test_invite_sign_up_page_steps(context, backend):
    backend.invites.add("new@acme.test", "client-1", expires_at=datetime.now(timezone.utc) + timedelta(days=30))
    page = InviteSignUpPage(context)

    assert not page.check_invite("other@acme.test")
    assert page.error == NO_INVITATION
    assert page.step == "email"

    assert page.check_invite("new@acme.test")
    assert page.step == "details"
    assert page.invite_role_label == "client contact"

    assert not page.submit("New Person", "short")
    assert page.step == "details"
    assert page.submit("New Person", "long-enough")
    assert page.step == "done"


def test_parse_fragment_reads_tokens():
    assert parse_fragment("#access_token=a&refresh_token=r&type=signup") == {
        "access_token": "a",
        "refresh_token": "r",
        "type": "signup",
    }


def test_callback_tokens_are_detected_in_query():
    assert has_callback_tokens({"fragment": "access_token=a&refresh_token=r"})
    assert has_callback_tokens({"fragment": ""})
    assert has_callback_tokens({"access_token": "a", "refresh_token": "r"})
    assert not has_callback_tokens({})
    assert not has_callback_tokens({"type": "signup"})


def test_auth_callback_establishes_session(context, fake_auth):
    context.start()
    page = AuthCallbackPage(context, query={"fragment": "access_token=a&refresh_token=r"})

    page.mount()

    assert page.error is None
    assert context.navigator.path == "/"
    assert context.session_store.session is not None


def test_auth_callback_without_tokens_redirects_to_sign_in(context, fake_auth):
    page = AuthCallbackPage(context, fragment="")

    page.mount()

    assert page.error == "No tokens found in URL"
    assert page.redirect_delay == 0.0
    page.finish()
    assert context.navigator.path == "/auth/sign-in"
    assert "set_session" not in fake_auth.calls


def test_home_page_sign_out(context, fake_auth):
    fake_auth.login_as(Role.CLIENT_CONTACT, email="me@acme.test")
    context.start()
    page = HomePage(context)

    assert page.user_email == "me@acme.test"
    assert page.sign_out()
    assert context.session_store.session is None
    assert context.navigator.path == "/auth/sign-in"
