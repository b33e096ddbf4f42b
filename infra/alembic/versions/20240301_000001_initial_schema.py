"""Initial helpdesk schema with row-level security."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

from resonance.backend.policies import POLICIES, TABLES, enable_rls_sql, render_policy_sql

revision = "20240301_000001"
down_revision = None
branch_labels = None
depends_on = None

_UUID = postgresql.UUID(as_uuid=False)
_NOW = sa.text("now()")
_GEN_UUID = sa.text("gen_random_uuid()")

_JWT_FUNCTIONS = (
    """
    CREATE OR REPLACE FUNCTION public.jwt_role() RETURNS text
    LANGUAGE sql STABLE AS $$
      SELECT coalesce(
        auth.jwt() -> 'app_metadata' ->> 'role',
        auth.jwt() -> 'user_metadata' ->> 'role'
      )
    $$
    """,
    """
    CREATE OR REPLACE FUNCTION public.jwt_client_id() RETURNS uuid
    LANGUAGE sql STABLE AS $$
      SELECT nullif(coalesce(
        auth.jwt() -> 'app_metadata' ->> 'client_id',
        auth.jwt() -> 'user_metadata' ->> 'client_id'
      ), '')::uuid
    $$
    """,
)


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("id", _UUID, primary_key=True, nullable=False, server_default=_GEN_UUID),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("contact_info", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=_NOW),
    )

    op.create_table(
        "invites",
        sa.Column("id", _UUID, primary_key=True, nullable=False, server_default=_GEN_UUID),
        sa.Column("client_id", _UUID, sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False, server_default=sa.text("'CLIENT_CONTACT'")),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("used_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=_NOW),
    )
    op.create_index("ix_invites_email", "invites", ["email"])

    op.create_table(
        "profiles",
        sa.Column("id", _UUID, sa.ForeignKey("auth.users.id", ondelete="CASCADE"), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=50), nullable=True),
        sa.Column("client_id", _UUID, sa.ForeignKey("clients.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=_NOW),
    )

    op.create_table(
        "ticket_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("workflow_metadata", postgresql.JSONB(), nullable=True),
    )

    op.create_table(
        "tickets",
        sa.Column("id", _UUID, primary_key=True, nullable=False, server_default=_GEN_UUID),
        sa.Column("ticket_type_id", sa.Integer(), sa.ForeignKey("ticket_types.id"), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False, server_default=sa.text("'NEW'")),
        sa.Column("priority", sa.String(length=50), nullable=False, server_default=sa.text("'NORMAL'")),
        sa.Column("severity", sa.String(length=50), nullable=True, server_default=sa.text("'NONE'")),
        sa.Column("requester_id", _UUID, sa.ForeignKey("auth.users.id"), nullable=False),
        sa.Column("assigned_agent_id", _UUID, sa.ForeignKey("auth.users.id"), nullable=True),
        sa.Column("client_id", _UUID, sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=True),
        sa.Column("tags", postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column("custom_fields", postgresql.JSONB(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=_NOW),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=_NOW),
    )
    op.create_index("ix_tickets_client_id", "tickets", ["client_id"])

    op.create_table(
        "messages",
        sa.Column("id", _UUID, primary_key=True, nullable=False, server_default=_GEN_UUID),
        sa.Column("ticket_id", _UUID, sa.ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_id", _UUID, sa.ForeignKey("auth.users.id"), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("attachments", postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=_NOW),
    )
    op.create_index("ix_messages_ticket_id", "messages", ["ticket_id"])

    for statement in _JWT_FUNCTIONS:
        op.execute(statement)
    for table in TABLES:
        op.execute(enable_rls_sql(table))
    for policy in POLICIES:
        op.execute(render_policy_sql(policy))


def downgrade() -> None:
    for policy in reversed(POLICIES):
        op.execute(f'DROP POLICY IF EXISTS "{policy.name}" ON public.{policy.table}')
    op.execute("DROP FUNCTION IF EXISTS public.jwt_client_id()")
    op.execute("DROP FUNCTION IF EXISTS public.jwt_role()")

    op.drop_index("ix_messages_ticket_id", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_tickets_client_id", table_name="tickets")
    op.drop_table("tickets")
    op.drop_table("ticket_types")
    op.drop_table("profiles")
    op.drop_index("ix_invites_email", table_name="invites")
    op.drop_table("invites")
    op.drop_table("clients")
