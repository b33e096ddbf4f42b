from __future__ import annotations

import time
from typing import Callable

import streamlit as st
import streamlit.components.v1 as components

from resonance.domain.models import Ticket, TicketPriority, TicketSeverity, TicketStatus
from resonance.pages import (
    AddClientPage,
    AddTicketPage,
    AuthCallbackPage,
    ClientPage,
    ClientsListPage,
    DashboardLayout,
    DashboardPage,
    HomePage,
    InviteSignUpPage,
    NotFoundPage,
    Page,
    ProtectedPage,
    SignInPage,
    SignUpPage,
    TicketDetailPage,
    TicketsListPage,
)

from .utils import enum_label, format_timestamp, parse_custom_fields, parse_tags

# Browsers never send the URL fragment to the server; move it into the query.
_FRAGMENT_TO_QUERY = """
<script>
const loc = window.parent.location;
const params = new URLSearchParams(loc.search);
if (!params.has("fragment")) {
  params.set("fragment", loc.hash.length > 1 ? loc.hash.substring(1) : "");
  loc.replace(loc.pathname + "?" + params.toString());
}
</script>
"""


def _ticket_rows(tickets: list[Ticket]) -> list[dict[str, str]]:
    return [
        {
            "ID": ticket.id,
            "Title": ticket.title,
            "Type": ticket.ticket_type_name or "-",
            "Status": enum_label(ticket.status),
            "Priority": enum_label(ticket.priority),
            "Created": format_timestamp(ticket.created_at),
        }
        for ticket in tickets
    ]


def _render_ticket_links(tickets: list[Ticket], navigate: Callable[[str], None]) -> None:
    if not tickets:
        st.caption("No tickets yet")
        return
    st.dataframe(_ticket_rows(tickets), use_container_width=True, hide_index=True)
    for ticket in tickets:
        if st.button(f"Open {ticket.title}", key=f"open-ticket-{ticket.id}"):
            navigate(f"/tickets/{ticket.id}")


def _render_error(page: Page) -> bool:
    if page.error:
        st.error(page.error)
        return True
    return False


def render_sign_in(page: SignInPage) -> None:
    if not page.should_render_form:
        return
    st.title(page.title)
    with st.form("sign_in_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign In", disabled=page.submitting)
    if submitted:
        page.submit(email, password)
    _render_error(page)
    if st.button("Need an account? Sign up"):
        page.navigate("/auth/sign-up")


def render_sign_up(page: SignUpPage) -> None:
    if not page.should_render_form:
        return
    st.title(page.title)
    if page.completed:
        st.success("Check your inbox to confirm your email address, then sign in.")
    else:
        with st.form("sign_up_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign Up", disabled=page.submitting)
        if submitted:
            page.submit(email, password)
        _render_error(page)
    if st.button("Already have an account? Sign in"):
        page.navigate(page.context.settings.sign_in_path)


def render_invite_sign_up(page: InviteSignUpPage) -> None:
    if not page.should_render_form:
        return
    st.title(page.title)
    if page.step == "email":
        st.write("Enter the email address your invitation was sent to.")
        with st.form("invite_email_form"):
            email = st.text_input("Email")
            submitted = st.form_submit_button("Continue", disabled=page.submitting)
        if submitted:
            page.check_invite(email)
            if page.step == "details":
                st.rerun()
    elif page.step == "details":
        st.info(f"Invitation found for {page.email} as {page.invite_role_label}.")
        with st.form("invite_details_form"):
            full_name = st.text_input("Full name")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Create account", disabled=page.submitting)
        if submitted:
            page.submit(full_name, password)
            if page.step == "done":
                st.rerun()
        if st.button("Back"):
            page.back()
            st.rerun()
    else:
        st.success("Account created. Check your inbox to confirm your email address, then sign in.")
    _render_error(page)
    if st.button("Already have an account? Sign in"):
        page.navigate(page.context.settings.sign_in_path)


def render_auth_callback(page: AuthCallbackPage) -> None:
    st.title(page.title)
    if page.loading:
        st.info("Confirming your email...")
        return
    if page.error:
        st.error(page.error)
        st.caption("Redirecting to sign in...")
        time.sleep(page.redirect_delay or 0)
        page.finish()


def render_home(page: HomePage) -> None:
    st.title("Welcome")
    st.write(f"Signed in as **{page.user_email}**")
    if st.button("Sign Out", disabled=page.signing_out):
        page.sign_out()
    _render_error(page)


def render_protected(page: ProtectedPage) -> None:
    st.title(page.title)
    st.write("This page is only visible to signed-in users.")


def render_not_found(page: NotFoundPage) -> None:
    st.title("404")
    st.write("The page you are looking for does not exist.")
    if st.button("Go home"):
        page.navigate("/")


def render_dashboard_sidebar(layout: DashboardLayout) -> None:
    clients = layout.clients
    if not clients:
        return
    ids = [client.id for client in clients]
    active = layout.active_client
    index = ids.index(active.id) if active is not None and active.id in ids else 0
    selected = st.sidebar.selectbox(
        "Client",
        options=ids,
        index=index,
        format_func=lambda client_id: next(c.name for c in clients if c.id == client_id),
    )
    if active is None or selected != active.id:
        layout.select_client(selected)
        st.rerun()


def render_dashboard(page: DashboardPage) -> None:
    st.title(page.title)
    if page.client is not None:
        st.caption(page.client.name)
    if page.loading:
        st.info("Loading tickets...")
        return
    if _render_error(page):
        return
    total, open_, urgent = st.columns(3)
    total.metric("Total Tickets", page.total_tickets)
    open_.metric("Open Tickets", page.open_tickets)
    urgent.metric("Urgent Tickets", page.urgent_tickets)


def render_clients_list(page: ClientsListPage) -> None:
    st.title(page.title)
    if _render_error(page):
        return
    if not page.clients:
        st.caption("No clients yet")
    for client in page.clients:
        cols = st.columns([3, 3, 1])
        cols[0].write(f"**{client.name}**")
        cols[1].write(client.contact_info.email)
        if cols[2].button("View", key=f"view-client-{client.id}"):
            page.navigate(f"/clients/{client.id}")
    if st.button("Add Client"):
        page.navigate("/add-client")


def render_client(page: ClientPage) -> None:
    st.title(page.title)
    if _render_error(page) or page.client is None:
        return
    client = page.client
    st.subheader(client.name)
    contact = client.contact_info
    st.write(f"**Contact:** {contact.full_name}")
    st.write(f"**Email:** {contact.email}")
    if contact.phone:
        st.write(f"**Phone:** {contact.phone}")
    if client.notes:
        st.write(f"**Notes:** {client.notes}")
    st.markdown("### Tickets")
    _render_ticket_links(page.tickets, page.navigate)


def render_add_client(page: AddClientPage) -> None:
    st.title(page.title)
    with st.form("add_client_form"):
        name = st.text_input("Client name")
        first_name = st.text_input("Contact first name")
        last_name = st.text_input("Contact last name")
        email = st.text_input("Contact email")
        phone = st.text_input("Contact phone")
        notes = st.text_area("Notes")
        submitted = st.form_submit_button("Add Client", disabled=page.submitting)
    if submitted:
        page.submit(
            name=name,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            notes=notes,
        )
    _render_error(page)


def render_tickets_list(page: TicketsListPage) -> None:
    st.title(page.title)
    if _render_error(page):
        return
    _render_ticket_links(page.tickets, page.navigate)


def _select_index(options: list[str], current: str | None) -> int:
    return options.index(current) if current in options else 0


def render_ticket_detail(page: TicketDetailPage) -> None:
    if _render_error(page) or page.ticket is None:
        return
    ticket = page.ticket
    st.title(ticket.title)
    cols = st.columns(4)
    cols[0].metric("Status", enum_label(ticket.status))
    cols[1].metric("Priority", enum_label(ticket.priority))
    cols[2].metric("Severity", enum_label(ticket.severity))
    cols[3].metric("Type", page.ticket_type_name or "-")
    if ticket.description:
        st.write(ticket.description)
    if ticket.tags:
        st.caption("Tags: " + ", ".join(ticket.tags))
    if ticket.custom_fields:
        st.json(dict(ticket.custom_fields))

    if page.can_update:
        st.markdown("### Update Ticket")
        statuses = [status.value for status in TicketStatus]
        priorities = [priority.value for priority in TicketPriority]
        severities = [severity.value for severity in TicketSeverity]
        with st.form("update_ticket_form"):
            status = st.selectbox(
                "Status", statuses, index=_select_index(statuses, page.form_values.get("status"))
            )
            priority = st.selectbox(
                "Priority", priorities, index=_select_index(priorities, page.form_values.get("priority"))
            )
            severity = st.selectbox(
                "Severity", severities, index=_select_index(severities, page.form_values.get("severity"))
            )
            agent = st.text_input("Assigned agent ID", value=page.form_values.get("assigned_agent_id", ""))
            submitted = st.form_submit_button("Update Ticket", disabled=page.updating)
        if submitted and page.update_ticket(
            {"status": status, "priority": priority, "severity": severity, "assigned_agent_id": agent}
        ):
            st.success("Ticket updated")
        if page.update_error:
            st.error(page.update_error)

    st.markdown("### Messages")
    if not page.messages:
        st.caption("No messages yet")
    for message in page.messages:
        st.markdown(f"**{message.author_id or 'Unknown'}** ({format_timestamp(message.created_at)})")
        st.write(message.content)

    with st.form("send_message_form", clear_on_submit=True):
        content = st.text_area("New message", value=page.draft, height=120)
        sent = st.form_submit_button("Send", disabled=page.sending)
    if sent and page.send_message(content):
        st.rerun()
    if page.message_error:
        st.error(page.message_error)


def render_add_ticket(page: AddTicketPage) -> None:
    st.title(page.title)
    if page.types_loading:
        st.info("Loading ticket types...")
        return
    type_ids = [ticket_type.id for ticket_type in page.ticket_types]
    names = {ticket_type.id: ticket_type.name for ticket_type in page.ticket_types}
    with st.form("add_ticket_form"):
        ticket_type_id = st.selectbox(
            "Ticket type",
            options=type_ids,
            index=None,
            format_func=lambda type_id: names.get(type_id, str(type_id)),
        )
        title = st.text_input("Title")
        description = st.text_area("Description")
        priority = st.selectbox(
            "Priority",
            [priority.value for priority in TicketPriority],
            index=list(TicketPriority).index(TicketPriority.NORMAL),
        )
        severity = st.selectbox("Severity", [severity.value for severity in TicketSeverity])
        tags_raw = st.text_input("Tags (comma separated)")
        custom_raw = st.text_area("Custom fields (JSON)", value="{}")
        submitted = st.form_submit_button("Create Ticket", disabled=page.submitting)
    if submitted:
        try:
            custom_fields = parse_custom_fields(custom_raw)
        except ValueError as exc:
            st.error(str(exc))
            return
        page.submit(
            ticket_type_id=ticket_type_id,
            title=title,
            description=description,
            priority=priority,
            severity=severity,
            tags=parse_tags(tags_raw),
            custom_fields=custom_fields,
        )
    _render_error(page)


def render_fragment_bridge() -> None:
    components.html(_FRAGMENT_TO_QUERY, height=0)


# Subclasses first so isinstance dispatch picks the most specific view.
RENDERERS: tuple[tuple[type[Page], Callable[..., None]], ...] = (
    (InviteSignUpPage, render_invite_sign_up),
    (SignUpPage, render_sign_up),
    (SignInPage, render_sign_in),
    (AuthCallbackPage, render_auth_callback),
    (HomePage, render_home),
    (ProtectedPage, render_protected),
    (DashboardPage, render_dashboard),
    (ClientsListPage, render_clients_list),
    (ClientPage, render_client),
    (AddClientPage, render_add_client),
    (TicketsListPage, render_tickets_list),
    (TicketDetailPage, render_ticket_detail),
    (AddTicketPage, render_add_ticket),
    (NotFoundPage, render_not_found),
)


def render_page(page: Page) -> None:
    for page_type, renderer in RENDERERS:
        if isinstance(page, page_type):
            renderer(page)
            return
    st.title(page.title or type(page).__name__)
