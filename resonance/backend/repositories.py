"""Typed repositories over the Supabase table API.

Each repository exposes one method per query shape the portals use. The query
builder never leaks past this module, and PostgREST failures are re-raised as
:class:`~resonance.backend.errors.BackendError`.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Protocol, Sequence

from postgrest.exceptions import APIError
from supabase import Client as SupabaseClient

from resonance.domain.models import (
    Client,
    ContactInfo,
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

from .errors import BackendError, from_postgrest

logger = logging.getLogger(__name__)


class ClientRepository(Protocol):
    def list_all(self) -> list[Client]: ...

    def find_by_id(self, client_id: str) -> Client | None: ...

    def insert(self, values: Mapping[str, Any]) -> Client: ...


class InviteRepository(Protocol):
    def find_valid_by_email(self, email: str, *, now: datetime) -> Invite | None: ...

    def insert(self, values: Mapping[str, Any]) -> Invite: ...

    def update_fields(self, invite_id: str, fields: Mapping[str, Any]) -> None: ...


class ProfileRepository(Protocol):
    def find_by_id(self, profile_id: str) -> Profile | None: ...

    def insert(self, values: Mapping[str, Any]) -> Profile: ...


class TicketRepository(Protocol):
    def list_all(self) -> list[Ticket]: ...

    def list_by_client(self, client_id: str) -> list[Ticket]: ...

    def find_by_id(self, ticket_id: str) -> Ticket | None: ...

    def insert(self, values: Mapping[str, Any]) -> Ticket: ...

    def update_fields(self, ticket_id: str, fields: Mapping[str, Any]) -> None: ...


class MessageRepository(Protocol):
    def list_by_ticket(self, ticket_id: str) -> list[Message]: ...

    def insert(self, values: Mapping[str, Any]) -> Message: ...


class TicketTypeRepository(Protocol):
    def list_all(self) -> list[TicketType]: ...


class _SupabaseTable:
    """Shared plumbing for the Supabase-backed repositories."""

    table_name: str = ""

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    def _query(self):
        return self._client.table(self.table_name)

    def _execute(self, query: Any) -> list[dict[str, Any]]:
        try:
            response = query.execute()
        except APIError as exc:
            logger.warning("Query on %s failed: %s", self.table_name, exc.message)
            raise from_postgrest(exc) from exc
        data = getattr(response, "data", None)
        if data is None:
            return []
        if isinstance(data, list):
            return data
        return [data]

    def _first(self, query: Any) -> dict[str, Any] | None:
        rows = self._execute(query)
        return rows[0] if rows else None

    def _insert_returning(self, values: Mapping[str, Any]) -> dict[str, Any]:
        row = self._first(self._query().insert(dict(values)))
        if row is None:
            raise BackendError(f"Insert into {self.table_name} returned no row")
        return row


class SupabaseClientRepository(_SupabaseTable):
    table_name = "clients"

    def list_all(self) -> list[Client]:
        rows = self._execute(self._query().select("*").order("created_at"))
        return [_row_to_client(row) for row in rows]

    def find_by_id(self, client_id: str) -> Client | None:
        row = self._first(self._query().select("*").eq("id", client_id).limit(1))
        return None if row is None else _row_to_client(row)

    def insert(self, values: Mapping[str, Any]) -> Client:
        return _row_to_client(self._insert_returning(values))


class SupabaseInviteRepository(_SupabaseTable):
    table_name = "invites"

    def find_valid_by_email(self, email: str, *, now: datetime) -> Invite | None:
        query = (
            self._query()
            .select("*")
            .eq("email", email)
            .is_("used_at", "null")
            .gt("expires_at", now.isoformat())
            .limit(1)
        )
        row = self._first(query)
        return None if row is None else _row_to_invite(row)

    def insert(self, values: Mapping[str, Any]) -> Invite:
        return _row_to_invite(self._insert_returning(values))

    def update_fields(self, invite_id: str, fields: Mapping[str, Any]) -> None:
        self._execute(self._query().update(dict(fields)).eq("id", invite_id))


class SupabaseProfileRepository(_SupabaseTable):
    table_name = "profiles"

    def find_by_id(self, profile_id: str) -> Profile | None:
        row = self._first(self._query().select("*").eq("id", profile_id).limit(1))
        return None if row is None else _row_to_profile(row)

    def insert(self, values: Mapping[str, Any]) -> Profile:
        return _row_to_profile(self._insert_returning(values))


class SupabaseTicketRepository(_SupabaseTable):
    table_name = "tickets"

    def list_all(self) -> list[Ticket]:
        rows = self._execute(self._query().select("*").order("created_at", desc=True))
        return [_row_to_ticket(row) for row in rows]

    def list_by_client(self, client_id: str) -> list[Ticket]:
        query = (
            self._query()
            .select("*, ticket_types(name)")
            .eq("client_id", client_id)
            .order("created_at", desc=True)
        )
        return [_row_to_ticket(row) for row in self._execute(query)]

    def find_by_id(self, ticket_id: str) -> Ticket | None:
        row = self._first(self._query().select("*").eq("id", ticket_id).limit(1))
        return None if row is None else _row_to_ticket(row)

    def insert(self, values: Mapping[str, Any]) -> Ticket:
        return _row_to_ticket(self._insert_returning(values))

    def update_fields(self, ticket_id: str, fields: Mapping[str, Any]) -> None:
        # The updated row is not requested back; callers re-read it.
        self._execute(self._query().update(dict(fields)).eq("id", ticket_id))


class SupabaseMessageRepository(_SupabaseTable):
    table_name = "messages"

    def list_by_ticket(self, ticket_id: str) -> list[Message]:
        query = self._query().select("*").eq("ticket_id", ticket_id).order("created_at")
        return [_row_to_message(row) for row in self._execute(query)]

    def insert(self, values: Mapping[str, Any]) -> Message:
        return _row_to_message(self._insert_returning(values))


class SupabaseTicketTypeRepository(_SupabaseTable):
    table_name = "ticket_types"

    def list_all(self) -> list[TicketType]:
        rows = self._execute(self._query().select("*").order("id"))
        return [_row_to_ticket_type(row) for row in rows]


def parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _row_to_client(row: Mapping[str, Any]) -> Client:
    return Client(
        id=str(row["id"]),
        name=str(row["name"]),
        contact_info=ContactInfo.from_payload(row.get("contact_info")),
        notes=row.get("notes") or None,
        created_at=parse_timestamp(row.get("created_at")),
    )


def _row_to_invite(row: Mapping[str, Any]) -> Invite:
    return Invite(
        id=str(row["id"]),
        client_id=str(row["client_id"]),
        email=str(row["email"]),
        role=Role.parse(row.get("role")) or Role.CLIENT_CONTACT,
        expires_at=parse_timestamp(row.get("expires_at")),
        used_at=parse_timestamp(row.get("used_at")),
    )


def _row_to_profile(row: Mapping[str, Any]) -> Profile:
    return Profile(
        id=str(row["id"]),
        full_name=row.get("full_name"),
        role=Role.parse(row.get("role")),
        client_id=_optional_str(row.get("client_id")),
    )


def _row_to_ticket(row: Mapping[str, Any]) -> Ticket:
    severity = row.get("severity")
    ticket_type = row.get("ticket_types")
    type_name = ticket_type.get("name") if isinstance(ticket_type, Mapping) else None
    ticket_type_id = row.get("ticket_type_id")
    return Ticket(
        id=str(row["id"]),
        ticket_type_id=None if ticket_type_id is None else int(ticket_type_id),
        title=str(row["title"]),
        description=row.get("description"),
        status=TicketStatus(str(row.get("status") or TicketStatus.NEW.value)),
        priority=TicketPriority(str(row.get("priority") or TicketPriority.NORMAL.value)),
        severity=None if severity is None else TicketSeverity(str(severity)),
        requester_id=str(row["requester_id"]),
        assigned_agent_id=_optional_str(row.get("assigned_agent_id")),
        client_id=_optional_str(row.get("client_id")),
        tags=_as_sequence(row.get("tags")),
        custom_fields=row.get("custom_fields"),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
        ticket_type_name=type_name,
    )


def _row_to_message(row: Mapping[str, Any]) -> Message:
    return Message(
        id=str(row["id"]),
        ticket_id=str(row["ticket_id"]),
        author_id=_optional_str(row.get("author_id")),
        content=str(row.get("content", "")),
        attachments=_as_sequence(row.get("attachments")),
        created_at=parse_timestamp(row.get("created_at")),
    )


def _row_to_ticket_type(row: Mapping[str, Any]) -> TicketType:
    return TicketType(
        id=int(row["id"]),
        name=str(row["name"]),
        description=row.get("description"),
        workflow_metadata=row.get("workflow_metadata"),
    )


def _as_sequence(value: Any) -> Sequence[str] | None:
    if value is None:
        return None
    return [str(item) for item in value]
