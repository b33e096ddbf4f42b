"""Entities shared by the backend adapters, services and pages."""

from .models import (
    AuthUser,
    Client,
    ContactInfo,
    Identity,
    Invite,
    Message,
    NewClient,
    NewTicket,
    Profile,
    Role,
    Ticket,
    TicketPriority,
    TicketSeverity,
    TicketStatus,
    TicketType,
)

__all__ = [
    "AuthUser",
    "Client",
    "ContactInfo",
    "Identity",
    "Invite",
    "Message",
    "NewClient",
    "NewTicket",
    "Profile",
    "Role",
    "Ticket",
    "TicketPriority",
    "TicketSeverity",
    "TicketStatus",
    "TicketType",
]
