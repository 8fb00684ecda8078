"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

AGENT_ROLES = ("Admin", "Agent", "Referrer")
AGENT_STATUSES = ("Pending", "Active", "Inactive", "Rejected")
LEAD_STATUSES = (
    "New",
    "Contacted",
    "Preparing Documents",
    "Submitted",
    "Approved",
    "KIV",
    "Rejected",
    "Accepted",
)
COMMISSION_STATUSES = ("Pending", "Paid")
AUDIT_ACTIONS = (
    "login",
    "create_agent",
    "update_agent",
    "approve_agent",
    "change_agent_status",
    "delete_agent",
    "create_lead",
    "update_lead_status",
    "assign_lead",
    "delete_lead",
    "create_commission",
    "update_commission",
)


def upgrade() -> None:
    """Create all initial tables and seed the lead sequence."""

    # Agents table
    op.create_table(
        "agents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("location", sa.String(100), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum(*AGENT_ROLES, name="agentrole"), nullable=False),
        sa.Column("status", sa.Enum(*AGENT_STATUSES, name="agentstatus"), nullable=False),
        sa.Column("referral_code", sa.String(50), nullable=False),
        sa.Column(
            "parent_referrer_id",
            sa.Integer(),
            sa.ForeignKey("agents.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("bank_name", sa.String(100), nullable=True),
        sa.Column("account_number", sa.String(30), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("email", name="uq_agents_email"),
    )
    op.create_index("ix_agents_phone", "agents", ["phone"], unique=True)
    op.create_index("ix_agents_referral_code", "agents", ["referral_code"], unique=True)
    op.create_index("ix_agents_role", "agents", ["role"])
    op.create_index("ix_agents_status", "agents", ["status"])
    op.create_index("ix_agents_deleted_at", "agents", ["deleted_at"])

    # Leads table
    op.create_table(
        "leads",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("unique_id", sa.String(32), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("loan_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("estimated_savings", sa.Numeric(15, 2), nullable=False),
        sa.Column("monthly_savings", sa.Numeric(15, 2), nullable=False),
        sa.Column("yearly_savings", sa.Numeric(15, 2), nullable=False),
        sa.Column("new_monthly_repayment", sa.Numeric(15, 2), nullable=False),
        sa.Column("bank_name", sa.String(100), nullable=True),
        sa.Column("status", sa.Enum(*LEAD_STATUSES, name="leadstatus"), nullable=False),
        sa.Column("source", sa.String(20), server_default="Direct", nullable=False),
        sa.Column(
            "assigned_agent_id",
            sa.Integer(),
            sa.ForeignKey("agents.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "referrer_id",
            sa.Integer(),
            sa.ForeignKey("agents.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("referrer_code", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("unique_id", name="uq_leads_unique_id"),
    )
    op.create_index("ix_leads_status", "leads", ["status"])
    op.create_index("ix_leads_assigned_agent_id", "leads", ["assigned_agent_id"])
    op.create_index("ix_leads_referrer_id", "leads", ["referrer_id"])
    op.create_index("ix_leads_deleted_at", "leads", ["deleted_at"])

    # Lead display-id counter
    lead_sequences = op.create_table(
        "lead_sequences",
        sa.Column("name", sa.String(50), primary_key=True),
        sa.Column("last_value", sa.Integer(), nullable=False),
    )
    op.bulk_insert(lead_sequences, [{"name": "lead_unique_id", "last_value": 0}])

    # Commissions table
    op.create_table(
        "commissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "lead_id",
            sa.Integer(),
            sa.ForeignKey("leads.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "agent_id",
            sa.Integer(),
            sa.ForeignKey("agents.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "referrer_id",
            sa.Integer(),
            sa.ForeignKey("agents.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("loan_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("max_commission", sa.Numeric(15, 2), nullable=False),
        sa.Column("referrer_commission", sa.Numeric(15, 2), nullable=False),
        sa.Column("agent_commission", sa.Numeric(15, 2), nullable=False),
        sa.Column("status", sa.Enum(*COMMISSION_STATUSES, name="commissionstatus"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    # One commission per lead
    op.create_index("ix_commissions_lead_id", "commissions", ["lead_id"], unique=True)
    op.create_index("ix_commissions_agent_id", "commissions", ["agent_id"])
    op.create_index("ix_commissions_referrer_id", "commissions", ["referrer_id"])
    op.create_index("ix_commissions_status", "commissions", ["status"])

    # Audit logs table
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "agent_id",
            sa.Integer(),
            sa.ForeignKey("agents.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("action", sa.Enum(*AUDIT_ACTIONS, name="auditaction"), nullable=False),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_agent_id", "audit_logs", ["agent_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("audit_logs")
    op.drop_table("commissions")
    op.drop_table("lead_sequences")
    op.drop_table("leads")
    op.drop_table("agents")

    for enum_name in ("auditaction", "commissionstatus", "leadstatus", "agentstatus", "agentrole"):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
