"""
AuditLog model for tracking directory, lead and commission changes.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leadbroker.models.base import Base

if TYPE_CHECKING:
    from leadbroker.models.agent import Agent


class AuditAction(str, Enum):
    """Types of auditable actions."""
    LOGIN = "login"
    CREATE_AGENT = "create_agent"
    UPDATE_AGENT = "update_agent"
    APPROVE_AGENT = "approve_agent"
    CHANGE_AGENT_STATUS = "change_agent_status"
    DELETE_AGENT = "delete_agent"
    CREATE_LEAD = "create_lead"
    UPDATE_LEAD_STATUS = "update_lead_status"
    ASSIGN_LEAD = "assign_lead"
    DELETE_LEAD = "delete_lead"
    CREATE_COMMISSION = "create_commission"
    UPDATE_COMMISSION = "update_commission"


class AuditLog(Base):
    """
    Audit log entry.

    agent_id is the acting agent; it is empty for actions performed by
    the lead intake integration or at startup.
    """

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    agent_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("agents.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    action: Mapped[AuditAction] = mapped_column(
        SQLAlchemyEnum(
            AuditAction,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    target_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Type of entity affected (lead, agent, commission)",
    )
    target_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="ID of the affected entity",
    )
    action_metadata: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Additional context about the action",
    )
    ip_address: Mapped[Optional[str]] = mapped_column(
        String(45),
        nullable=True,
        comment="IPv4 or IPv6 address",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    # Relationships
    agent: Mapped[Optional["Agent"]] = relationship("Agent")

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, agent_id={self.agent_id}, action={self.action})>"
