"""Row-level security rules for every collection the portals touch.

The portals never authorise requests themselves; the backend enforces these
policies. They are declared here so the migration can install them and the
views can hide actions a role is not allowed to perform.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from resonance.domain.models import Role


class Command(str, Enum):
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"


STAFF_ROLES: tuple[Role, ...] = (Role.ADMIN, Role.AGENT, Role.DEVELOPER)

# SQL helpers installed by the initial migration.
ROLE_SQL = "public.jwt_role()"
TENANT_SQL = "public.jwt_client_id()"


@dataclass(frozen=True, slots=True)
class RowPolicy:
    """A single ``CREATE POLICY`` statement.

    ``roles=None`` means every signed-in identity; ``anonymous`` grants the
    policy to callers without a session instead.
    """

    table: str
    command: Command
    name: str
    roles: tuple[Role, ...] | None = None
    using: str | None = None
    check: str | None = None
    anonymous: bool = False

    def applies_to(self, role: Role | None) -> bool:
        if self.anonymous:
            return role is None
        if role is None:
            return False
        return self.roles is None or role in self.roles


POLICIES: tuple[RowPolicy, ...] = (
    RowPolicy("clients", Command.SELECT, "clients_staff_read", roles=STAFF_ROLES, using="true"),
    RowPolicy(
        "clients",
        Command.SELECT,
        "clients_contact_read_own",
        roles=(Role.CLIENT_CONTACT,),
        using=f"id = {TENANT_SQL}",
    ),
    RowPolicy("clients", Command.INSERT, "clients_admin_insert", roles=(Role.ADMIN,), check="true"),
    RowPolicy("invites", Command.SELECT, "invites_admin_read", roles=(Role.ADMIN,), using="true"),
    RowPolicy(
        "invites",
        Command.SELECT,
        "invites_open_lookup",
        using="used_at IS NULL AND expires_at > now()",
        anonymous=True,
    ),
    RowPolicy("invites", Command.INSERT, "invites_admin_insert", roles=(Role.ADMIN,), check="true"),
    RowPolicy(
        "invites",
        Command.UPDATE,
        "invites_consume",
        using="used_at IS NULL AND lower(email) = lower(auth.jwt() ->> 'email')",
        check="used_at IS NOT NULL",
    ),
    RowPolicy(
        "profiles",
        Command.SELECT,
        "profiles_read_own",
        using=f"id = auth.uid() OR {ROLE_SQL} = 'ADMIN'",
    ),
    RowPolicy("profiles", Command.INSERT, "profiles_insert_own", check="id = auth.uid()"),
    RowPolicy("tickets", Command.SELECT, "tickets_staff_read", roles=STAFF_ROLES, using="true"),
    RowPolicy(
        "tickets",
        Command.SELECT,
        "tickets_contact_read_own",
        roles=(Role.CLIENT_CONTACT,),
        using=f"client_id = {TENANT_SQL}",
    ),
    RowPolicy(
        "tickets",
        Command.INSERT,
        "tickets_requester_insert",
        check="requester_id = auth.uid()",
    ),
    RowPolicy(
        "tickets",
        Command.UPDATE,
        "tickets_staff_update",
        roles=(Role.ADMIN, Role.AGENT),
        using="true",
        check="true",
    ),
    RowPolicy("messages", Command.SELECT, "messages_staff_read", roles=STAFF_ROLES, using="true"),
    RowPolicy(
        "messages",
        Command.SELECT,
        "messages_contact_read_own",
        roles=(Role.CLIENT_CONTACT,),
        using=f"ticket_id IN (SELECT id FROM public.tickets WHERE client_id = {TENANT_SQL})",
    ),
    RowPolicy("messages", Command.INSERT, "messages_author_insert", check="author_id = auth.uid()"),
    RowPolicy("ticket_types", Command.SELECT, "ticket_types_read", using="true"),
)

TABLES: tuple[str, ...] = ("clients", "invites", "profiles", "ticket_types", "tickets", "messages")


def policies_for(table: str, policies: Iterable[RowPolicy] = POLICIES) -> list[RowPolicy]:
    return [policy for policy in policies if policy.table == table]


def is_allowed(
    role: Role | None,
    table: str,
    command: Command,
    policies: Iterable[RowPolicy] = POLICIES,
) -> bool:
    """Return whether any policy lets ``role`` run ``command`` on ``table``."""

    return any(
        policy.table == table and policy.command == command and policy.applies_to(role)
        for policy in policies
    )


def _role_guard(policy: RowPolicy) -> str | None:
    if policy.anonymous or policy.roles is None:
        return None
    quoted = ", ".join(f"'{role.value}'" for role in policy.roles)
    return f"{ROLE_SQL} IN ({quoted})"


def _combine(guard: str | None, expression: str | None) -> str | None:
    if guard is None:
        return expression
    if expression is None or expression == "true":
        return guard
    return f"({guard}) AND ({expression})"


def render_policy_sql(policy: RowPolicy) -> str:
    """Render ``policy`` as a PostgreSQL ``CREATE POLICY`` statement."""

    grantee = "anon" if policy.anonymous else "authenticated"
    guard = _role_guard(policy)
    parts = [
        f'CREATE POLICY "{policy.name}" ON public.{policy.table}',
        f"FOR {policy.command.value} TO {grantee}",
    ]
    using = _combine(guard, policy.using)
    if policy.command is not Command.INSERT and using is not None:
        parts.append(f"USING ({using})")
    check = _combine(guard, policy.check)
    if policy.command is not Command.SELECT and check is not None:
        parts.append(f"WITH CHECK ({check})")
    return " ".join(parts)


def enable_rls_sql(table: str) -> str:
    return f"ALTER TABLE public.{table} ENABLE ROW LEVEL SECURITY"
