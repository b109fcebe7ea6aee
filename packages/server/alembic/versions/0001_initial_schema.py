"""Initial schema: tenant tables, claims helper and row policies.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from app.core.config import get_settings
from app.core.policies import downgrade_statements, grant_statements, upgrade_statements

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _org_id() -> sa.Column:
    return sa.Column(
        "org_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("orgs.id", ondelete="CASCADE"),
        nullable=False,
    )


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.text("now()")
    )


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    settings = get_settings()

    # -----------------------------------------------------------------------
    # 1. Tables
    # -----------------------------------------------------------------------

    # orgs (readable by everyone, RLS not forced)
    op.create_table(
        "orgs",
        _id(),
        sa.Column("name", sa.Text(), nullable=False),
        _created_at(),
    )

    # users: id is the identity provider's subject id
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _org_id(),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("role", sa.Text(), nullable=False, server_default="staff"),
        _created_at(),
    )
    op.create_index("ix_users_org_id", "users", ["org_id"])

    op.create_table(
        "customers",
        _id(),
        _org_id(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("addr1", sa.Text(), nullable=True),
        sa.Column("addr2", sa.Text(), nullable=True),
        sa.Column("memo", sa.Text(), nullable=True),
        _created_at(),
        sa.UniqueConstraint("org_id", "phone", name="u_customers_org_phone"),
    )
    op.create_index("ix_customers_org_id", "customers", ["org_id"])
    op.create_index("ix_customers_created_at", "customers", ["created_at"])

    op.create_table(
        "leads",
        _id(),
        _org_id(),
        sa.Column("bride_name", sa.Text(), nullable=False),
        sa.Column("groom_name", sa.Text(), nullable=False),
        sa.Column("bride_phone", sa.Text(), nullable=True),
        sa.Column("groom_phone", sa.Text(), nullable=True),
        sa.Column("bride_email", sa.Text(), nullable=True),
        sa.Column("groom_email", sa.Text(), nullable=True),
        sa.Column("addr1", sa.Text(), nullable=True),
        sa.Column("addr2", sa.Text(), nullable=True),
        sa.Column("interests", postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column("wedding_planned_on", sa.Date(), nullable=True),
        sa.Column("expected_venue", sa.Text(), nullable=True),
        sa.Column("memo", sa.Text(), nullable=True),
        sa.Column("source", sa.Text(), nullable=False, server_default="etc"),
        sa.Column("visited", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("consent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("consent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "customer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("customers.id"),
            nullable=True,
        ),
        _created_at(),
        sa.UniqueConstraint("org_id", "bride_phone", name="u_leads_org_bride_phone"),
        sa.UniqueConstraint("org_id", "groom_phone", name="u_leads_org_groom_phone"),
    )
    op.create_index("ix_leads_org_id", "leads", ["org_id"])
    op.create_index("ix_leads_created_at", "leads", ["created_at"])
    op.create_index("ix_leads_customer_id", "leads", ["customer_id"])

    op.create_table(
        "appointments",
        _id(),
        _org_id(),
        sa.Column(
            "customer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("customers.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "staff_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("kind", sa.Text(), nullable=False, server_default="visit"),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.Text(), nullable=True, server_default="scheduled"),
        sa.Column("note", sa.Text(), nullable=True),
        _created_at(),
        sa.CheckConstraint("end_at > start_at", name="appt_time_valid"),
    )
    op.create_index("ix_appointments_org_id", "appointments", ["org_id"])
    op.create_index("ix_appointments_start_at", "appointments", ["start_at"])
    op.create_index("ix_appointments_customer_id", "appointments", ["customer_id"])
    op.create_index("ix_appointments_staff_id", "appointments", ["staff_id"])

    op.create_table(
        "deals",
        _id(),
        _org_id(),
        sa.Column(
            "customer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("customers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "planner_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("stage", sa.Text(), nullable=False, server_default="lead"),
        sa.Column("amount", sa.Integer(), nullable=True, server_default="0"),
        sa.Column("contract_date", sa.Date(), nullable=True),
        sa.Column("memo", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_deals_org_id", "deals", ["org_id"])
    op.create_index("ix_deals_customer_id", "deals", ["customer_id"])
    op.create_index("ix_deals_planner_id", "deals", ["planner_id"])

    # -----------------------------------------------------------------------
    # 2. Row Level Security: claims helper, enable/force, policies
    # -----------------------------------------------------------------------

    for statement in upgrade_statements(settings.claims_setting_key):
        op.execute(statement)

    if settings.database_rls_role:
        for statement in grant_statements(settings.database_rls_role):
            op.execute(statement)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    for statement in downgrade_statements():
        op.execute(statement)

    # Reverse dependency order
    op.drop_table("deals")
    op.drop_table("appointments")
    op.drop_table("leads")
    op.drop_table("customers")
    op.drop_table("users")
    op.drop_table("orgs")
