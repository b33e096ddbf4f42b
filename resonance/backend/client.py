from __future__ import annotations

from dataclasses import dataclass

from supabase import create_client

from resonance.core.config import Settings

from .auth import AuthGateway, SupabaseAuthGateway
from .repositories import (
    ClientRepository,
    InviteRepository,
    MessageRepository,
    ProfileRepository,
    SupabaseClientRepository,
    SupabaseInviteRepository,
    SupabaseMessageRepository,
    SupabaseProfileRepository,
    SupabaseTicketRepository,
    SupabaseTicketTypeRepository,
    TicketRepository,
    TicketTypeRepository,
)


@dataclass(slots=True)
class Backend:
    """Auth gateway plus one repository per collection."""

    auth: AuthGateway
    clients: ClientRepository
    invites: InviteRepository
    profiles: ProfileRepository
    tickets: TicketRepository
    messages: MessageRepository
    ticket_types: TicketTypeRepository


def create_backend(settings: Settings) -> Backend:
    """Build a backend bound to a fresh Supabase client.

    The Supabase client keeps the signed-in session in memory, so every browser
    tab must get its own instance.
    """

    if not settings.supabase_url or not settings.supabase_anon_key:
        raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY must be configured")

    client = create_client(settings.supabase_url, settings.supabase_anon_key)
    return Backend(
        auth=SupabaseAuthGateway(client),
        clients=SupabaseClientRepository(client),
        invites=SupabaseInviteRepository(client),
        profiles=SupabaseProfileRepository(client),
        tickets=SupabaseTicketRepository(client),
        messages=SupabaseMessageRepository(client),
        ticket_types=SupabaseTicketTypeRepository(client),
    )
