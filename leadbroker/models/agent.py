"""
Agent model: admins, working agents and referrers.
"""

from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leadbroker.models.base import Base, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from leadbroker.models.lead import Lead


class AgentRole(str, Enum):
    """Directory roles."""
    ADMIN = "Admin"
    AGENT = "Agent"
    REFERRER = "Referrer"


class AgentStatus(str, Enum):
    """Account status. Only ACTIVE agents may log in or be assigned leads."""
    PENDING = "Pending"      # Self-registered, awaiting approval
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    REJECTED = "Rejected"    # Approval refused, final


class Agent(Base, TimestampMixin, SoftDeleteMixin):
    """
    Directory entry for an Admin, working Agent or Referrer.

    - referral_code is assigned once at creation and never changes
    - parent_referrer_id points at the sponsoring agent of a referrer;
      it is used for lead attribution only
    - phone, email and referral_code stay unique across soft-deleted rows
    """

    __tablename__ = "agents"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    phone: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        index=True,
        nullable=False,
    )
    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
    )
    location: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        default="Unknown",
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[AgentRole] = mapped_column(
        SQLAlchemyEnum(
            AgentRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=AgentRole.AGENT,
        nullable=False,
        index=True,
    )
    status: Mapped[AgentStatus] = mapped_column(
        SQLAlchemyEnum(
            AgentStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=AgentStatus.PENDING,
        nullable=False,
        index=True,
    )
    referral_code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    parent_referrer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("agents.id", ondelete="SET NULL"),
        nullable=True,
        comment="Sponsoring agent of a referrer (attribution only)",
    )

    # Payout details
    bank_name: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    account_number: Mapped[Optional[str]] = mapped_column(
        String(30),
        nullable=True,
    )

    # Relationships
    assigned_leads: Mapped[List["Lead"]] = relationship(
        "Lead",
        back_populates="agent",
        foreign_keys="Lead.assigned_agent_id",
    )

    @property
    def is_active(self) -> bool:
        return self.status == AgentStatus.ACTIVE and not self.is_deleted

    def __repr__(self) -> str:
        return f"<Agent(id={self.id}, role={self.role}, referral_code='{self.referral_code}')>"
