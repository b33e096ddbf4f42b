from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import pytest

from resonance.backend.client import Backend
from resonance.backend.errors import BackendError
from resonance.core.config import Settings
from resonance.domain.models import (
    AuthUser,
    Client,
    ContactInfo,
    Identity,
    Invite,
    Message,
    Profile,
    Role,
    Ticket,
    TicketPriority,
    TicketSeverity,
    TicketStatus,
    TicketType,
)
from resonance.portals.context import PortalContext


class TickingClock:
    """Returns a strictly increasing timestamp on every call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


class FakeRepository:
    def __init__(self, clock: TickingClock) -> None:
        self.clock = clock
        self.calls: list[str] = []
        self.failures: dict[str, BackendError] = {}
        self._ids = itertools.count(1)

    def fail(self, method: str, message: str = "backend exploded", code: str | None = "500") -> None:
        self.failures[method] = BackendError(message, code=code)

    def _record(self, method: str) -> None:
        self.calls.append(method)
        if method in self.failures:
            raise self.failures[method]

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"


class FakeClientRepository(FakeRepository):
    def __init__(self, clock: TickingClock) -> None:
        super().__init__(clock)
        self.rows: list[Client] = []

    def add(self, name: str, email: str = "contact@example.com") -> Client:
        client = Client(
            id=self._next_id("client"),
            name=name,
            contact_info=ContactInfo("Ada", "Lovelace", email),
            notes=None,
            created_at=self.clock(),
        )
        self.rows.append(client)
        return client

    def list_all(self) -> list[Client]:
        self._record("list_all")
        return sorted(self.rows, key=lambda client: client.created_at)

    def find_by_id(self, client_id: str) -> Client | None:
        self._record("find_by_id")
        return next((client for client in self.rows if client.id == client_id), None)

    def insert(self, values: Mapping[str, Any]) -> Client:
        self._record("insert")
        client = Client(
            id=self._next_id("client"),
            name=values["name"],
            contact_info=ContactInfo.from_payload(values["contact_info"]),
            notes=values.get("notes"),
            created_at=self.clock(),
        )
        self.rows.append(client)
        return client


class FakeInviteRepository(FakeRepository):
    def __init__(self, clock: TickingClock) -> None:
        super().__init__(clock)
        self.rows: list[Invite] = []
        self.inserted: list[dict[str, Any]] = []

    def add(self, email: str, client_id: str, *, expires_at: datetime, used_at: datetime | None = None) -> Invite:
        invite = Invite(
            id=self._next_id("invite"),
            client_id=client_id,
            email=email,
            role=Role.CLIENT_CONTACT,
            expires_at=expires_at,
            used_at=used_at,
        )
        self.rows.append(invite)
        return invite

    def find_valid_by_email(self, email: str, *, now: datetime) -> Invite | None:
        self._record("find_valid_by_email")
        for invite in self.rows:
            if invite.email == email and invite.used_at is None and invite.expires_at > now:
                return invite
        return None

    def insert(self, values: Mapping[str, Any]) -> Invite:
        self._record("insert")
        self.inserted.append(dict(values))
        return self.add(
            values["email"],
            values["client_id"],
            expires_at=datetime.fromisoformat(values["expires_at"]),
        )

    def update_fields(self, invite_id: str, fields: Mapping[str, Any]) -> None:
        self._record("update_fields")
        for index, invite in enumerate(self.rows):
            if invite.id == invite_id:
                self.rows[index] = replace(invite, used_at=datetime.fromisoformat(fields["used_at"]))


class FakeProfileRepository(FakeRepository):
    def __init__(self, clock: TickingClock) -> None:
        super().__init__(clock)
        self.rows: list[Profile] = []

    def find_by_id(self, profile_id: str) -> Profile | None:
        self._record("find_by_id")
        return next((profile for profile in self.rows if profile.id == profile_id), None)

    def insert(self, values: Mapping[str, Any]) -> Profile:
        self._record("insert")
        profile = Profile(
            id=values["id"],
            full_name=values.get("full_name"),
            role=Role.parse(values.get("role")),
            client_id=values.get("client_id"),
        )
        self.rows.append(profile)
        return profile


class FakeTicketRepository(FakeRepository):
    def __init__(self, clock: TickingClock) -> None:
        super().__init__(clock)
        self.rows: list[Ticket] = []
        self.inserted: list[dict[str, Any]] = []

    def add(self, title: str, client_id: str, **overrides: Any) -> Ticket:
        values = {
            "title": title,
            "client_id": client_id,
            "status": TicketStatus.NEW.value,
            "priority": TicketPriority.NORMAL.value,
            "requester_id": "user-1",
            "ticket_type_id": 1,
        }
        values.update(overrides)
        return self._store(values)

    def _store(self, values: Mapping[str, Any]) -> Ticket:
        now = self.clock()
        severity = values.get("severity")
        ticket = Ticket(
            id=self._next_id("ticket"),
            ticket_type_id=values.get("ticket_type_id"),
            title=values["title"],
            description=values.get("description"),
            status=TicketStatus(values["status"]),
            priority=TicketPriority(values["priority"]),
            severity=TicketSeverity(severity) if severity else None,
            requester_id=values["requester_id"],
            assigned_agent_id=values.get("assigned_agent_id"),
            client_id=values.get("client_id"),
            tags=values.get("tags"),
            custom_fields=values.get("custom_fields"),
            created_at=now,
            updated_at=now,
        )
        self.rows.append(ticket)
        return ticket

    def list_all(self) -> list[Ticket]:
        self._record("list_all")
        return sorted(self.rows, key=lambda ticket: ticket.created_at, reverse=True)

    def list_by_client(self, client_id: str) -> list[Ticket]:
        self._record("list_by_client")
        return [ticket for ticket in self.list_all() if ticket.client_id == client_id]

    def find_by_id(self, ticket_id: str) -> Ticket | None:
        self._record("find_by_id")
        return next((ticket for ticket in self.rows if ticket.id == ticket_id), None)

    def insert(self, values: Mapping[str, Any]) -> Ticket:
        self._record("insert")
        self.inserted.append(dict(values))
        return self._store(values)

    def update_fields(self, ticket_id: str, fields: Mapping[str, Any]) -> None:
        self._record("update_fields")
        for index, ticket in enumerate(self.rows):
            if ticket.id != ticket_id:
                continue
            changes: dict[str, Any] = {}
            for name, value in fields.items():
                if name == "status":
                    changes[name] = TicketStatus(value)
                elif name == "priority":
                    changes[name] = TicketPriority(value)
                elif name == "severity":
                    changes[name] = TicketSeverity(value) if value else None
                elif name == "updated_at":
                    changes[name] = datetime.fromisoformat(value)
                else:
                    changes[name] = value
            self.rows[index] = replace(ticket, **changes)


class FakeMessageRepository(FakeRepository):
    def __init__(self, clock: TickingClock) -> None:
        super().__init__(clock)
        self.rows: list[Message] = []

    def list_by_ticket(self, ticket_id: str) -> list[Message]:
        self._record("list_by_ticket")
        messages = [message for message in self.rows if message.ticket_id == ticket_id]
        return sorted(messages, key=lambda message: message.created_at)

    def insert(self, values: Mapping[str, Any]) -> Message:
        self._record("insert")
        message = Message(
            id=self._next_id("message"),
            ticket_id=values["ticket_id"],
            author_id=values.get("author_id"),
            content=values["content"],
            attachments=None,
            created_at=self.clock(),
        )
        self.rows.append(message)
        return message


class FakeTicketTypeRepository(FakeRepository):
    def __init__(self, clock: TickingClock) -> None:
        super().__init__(clock)
        self.rows: list[TicketType] = [
            TicketType(id=1, name="Bug"),
            TicketType(id=2, name="Feature Request"),
        ]

    def list_all(self) -> list[TicketType]:
        self._record("list_all")
        return list(self.rows)


class FakeSubscription:
    def __init__(self, auth: "FakeAuth", listener) -> None:
        self._auth = auth
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        self.active = False
        if self._listener in self._auth.listeners:
            self._auth.listeners.remove(self._listener)


class FakeAuth:
    """In-memory stand-in for the hosted auth service."""

    def __init__(self) -> None:
        self.session: Identity | None = None
        self.user: AuthUser | None = None
        self.listeners: list = []
        self.calls: list[str] = []
        self.failures: dict[str, BackendError] = {}
        self.sign_ups: list[tuple[str, dict[str, Any]]] = []
        self._ids = itertools.count(100)

    def fail(self, method: str, message: str = "auth failed", code: str | None = "400") -> None:
        self.failures[method] = BackendError(message, code=code)

    def _record(self, method: str) -> None:
        self.calls.append(method)
        if method in self.failures:
            raise self.failures[method]

    def login_as(
        self,
        role: Role | None,
        *,
        user_id: str = "user-1",
        email: str = "agent@example.com",
        client_id: str | None = None,
    ) -> Identity:
        self.user = AuthUser(user_id=user_id, email=email, role=role, client_id=client_id)
        self.session = Identity(
            access_token="access",
            refresh_token="refresh",
            user_id=user_id,
            email=email,
            role=role,
            client_id=client_id,
        )
        return self.session

    def emit(self, event: str, session: Identity | None) -> None:
        for listener in list(self.listeners):
            listener(event, session)

    def sign_in_with_password(self, email: str, password: str) -> Identity:
        self._record("sign_in_with_password")
        identity = self.login_as(Role.ADMIN, email=email)
        self.emit("SIGNED_IN", identity)
        return identity

    def sign_up(self, email: str, password: str, metadata: Mapping[str, Any] | None = None) -> AuthUser:
        self._record("sign_up")
        data = dict(metadata or {})
        self.sign_ups.append((email, data))
        return AuthUser(
            user_id=f"user-{next(self._ids)}",
            email=email,
            role=Role.parse(data.get("role")),
            client_id=data.get("client_id"),
            full_name=data.get("full_name"),
            metadata=data,
        )

    def sign_out(self) -> None:
        self._record("sign_out")
        self.session = None
        self.user = None
        self.emit("SIGNED_OUT", None)

    def set_session(self, access_token: str, refresh_token: str) -> Identity:
        self._record("set_session")
        identity = self.login_as(Role.CLIENT_CONTACT, email="contact@example.com")
        self.emit("SIGNED_IN", identity)
        return identity

    def current_session(self) -> Identity | None:
        self._record("current_session")
        return self.session

    def current_user(self) -> AuthUser | None:
        self._record("current_user")
        return self.user

    def on_auth_state_change(self, listener) -> FakeSubscription:
        self.listeners.append(listener)
        return FakeSubscription(self, listener)


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def fake_auth() -> FakeAuth:
    return FakeAuth()


@pytest.fixture
def backend(clock: TickingClock, fake_auth: FakeAuth) -> Backend:
    return Backend(
        auth=fake_auth,
        clients=FakeClientRepository(clock),
        invites=FakeInviteRepository(clock),
        profiles=FakeProfileRepository(clock),
        tickets=FakeTicketRepository(clock),
        messages=FakeMessageRepository(clock),
        ticket_types=FakeTicketTypeRepository(clock),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        supabase_url="http://backend.test",
        supabase_anon_key="anon-key",
        auth_callback_redirect_delay=0.0,
    )


@pytest.fixture
def context(settings: Settings, backend: Backend) -> PortalContext:
    portal_context = PortalContext.build(settings, backend)
    yield portal_context
    portal_context.close()
