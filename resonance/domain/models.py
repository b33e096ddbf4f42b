from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Sequence


class Role(str, Enum):
    """Roles carried in the identity's metadata."""

    ADMIN = "ADMIN"
    CLIENT_CONTACT = "CLIENT_CONTACT"
    AGENT = "AGENT"
    DEVELOPER = "DEVELOPER"

    @classmethod
    def parse(cls, value: Any) -> "Role | None":
        if isinstance(value, cls):
            return value
        if not value:
            return None
        try:
            return cls(str(value).upper())
        except ValueError:
            return None


class TicketStatus(str, Enum):
    """Ticket lifecycle states."""

    NEW = "NEW"
    OPEN = "OPEN"
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class TicketPriority(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TicketSeverity(str, Enum):
    NONE = "NONE"
    MINOR = "MINOR"
    MAJOR = "MAJOR"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True, slots=True)
class Identity:
    """The authenticated session of the current browser tab."""

    access_token: str
    refresh_token: str
    user_id: str
    email: str | None
    role: Role | None = None
    client_id: str | None = None
    full_name: str | None = None


@dataclass(frozen=True, slots=True)
class AuthUser:
    """User record returned by the auth backend."""

    user_id: str
    email: str | None
    role: Role | None = None
    client_id: str | None = None
    full_name: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ContactInfo:
    """Primary contact of a tenant organisation."""

    first_name: str
    last_name: str
    email: str
    phone: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
        }
        if self.phone:
            payload["phone"] = self.phone
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "ContactInfo":
        payload = payload or {}
        return cls(
            first_name=str(payload.get("firstName", "")),
            last_name=str(payload.get("lastName", "")),
            email=str(payload.get("email", "")),
            phone=payload.get("phone") or None,
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(slots=True)
class NewClient:
    """Input for the add-client flow."""

    name: str
    contact_info: ContactInfo
    notes: str | None = None


@dataclass(slots=True)
class Client:
    """Tenant organisation."""

    id: str
    name: str
    contact_info: ContactInfo
    notes: str | None
    created_at: datetime | None


@dataclass(slots=True)
class Invite:
    """One-time grant allowing an email to self-register for a client."""

    id: str
    client_id: str
    email: str
    role: Role
    expires_at: datetime | None
    used_at: datetime | None = None


@dataclass(slots=True)
class Profile:
    id: str
    full_name: str | None
    role: Role | None
    client_id: str | None


@dataclass(slots=True)
class TicketType:
    """Reference data describing a kind of ticket."""

    id: int
    name: str
    description: str | None = None
    workflow_metadata: Mapping[str, Any] | None = None


@dataclass(slots=True)
class NewTicket:
    """Input for the create-ticket form."""

    ticket_type_id: int
    title: str
    description: str
    priority: TicketPriority = TicketPriority.NORMAL
    severity: TicketSeverity | None = TicketSeverity.NONE
    tags: Sequence[str] | None = None
    custom_fields: Mapping[str, Any] | None = None


@dataclass(slots=True)
class Ticket:
    """Support ticket as stored by the backend."""

    id: str
    ticket_type_id: int | None
    title: str
    description: str | None
    status: TicketStatus
    priority: TicketPriority
    severity: TicketSeverity | None
    requester_id: str
    assigned_agent_id: str | None
    client_id: str | None
    tags: Sequence[str] | None
    custom_fields: Mapping[str, Any] | None
    created_at: datetime | None
    updated_at: datetime | None
    ticket_type_name: str | None = None

    @property
    def is_open(self) -> bool:
        return self.status in (TicketStatus.NEW, TicketStatus.OPEN)


@dataclass(slots=True)
class Message:
    """Append-only entry in a ticket conversation."""

    id: str
    ticket_id: str
    author_id: str | None
    content: str
    attachments: Sequence[str] | None
    created_at: datetime | None
