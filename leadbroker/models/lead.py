"""
Lead model and the display-id sequence.
"""

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leadbroker.models.base import Base, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from leadbroker.models.agent import Agent
    from leadbroker.models.commission import Commission


class LeadStatus(str, Enum):
    """Status of the lead in the loan pipeline."""
    NEW = "New"
    CONTACTED = "Contacted"
    PREPARING_DOCUMENTS = "Preparing Documents"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    KIV = "KIV"                  # Kept in view, may re-enter the pipeline
    REJECTED = "Rejected"        # Terminal
    ACCEPTED = "Accepted"        # Terminal, creates the commission


class LeadSource(str, Enum):
    """Where the lead came from."""
    DIRECT = "Direct"
    WHATSAPP = "whatsapp"


LEAD_SEQUENCE_NAME = "lead_unique_id"


class Lead(Base, TimestampMixin, SoftDeleteMixin):
    """
    A prospective borrower submitted through a referral link.

    unique_id is the human readable "N.0.0.0" display id, N taken from
    the lead_sequences counter. Status changes go through
    services.lead_status only.
    """

    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(primary_key=True)
    unique_id: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
    )

    # Customer
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    phone: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    # Financials
    loan_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        default=Decimal("0"),
        nullable=False,
    )
    estimated_savings: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        default=Decimal("0"),
        nullable=False,
    )
    monthly_savings: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        default=Decimal("0"),
        nullable=False,
    )
    yearly_savings: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        default=Decimal("0"),
        nullable=False,
    )
    new_monthly_repayment: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        default=Decimal("0"),
        nullable=False,
    )
    bank_name: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )

    # Status
    status: Mapped[LeadStatus] = mapped_column(
        SQLAlchemyEnum(
            LeadStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=LeadStatus.NEW,
        nullable=False,
        index=True,
    )
    source: Mapped[str] = mapped_column(
        String(20),
        default=LeadSource.DIRECT.value,
        server_default=LeadSource.DIRECT.value,
        nullable=False,
    )

    # Attribution
    assigned_agent_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("agents.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    referrer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("agents.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    referrer_code: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Referral code exactly as submitted",
    )

    # Relationships
    agent: Mapped[Optional["Agent"]] = relationship(
        "Agent",
        back_populates="assigned_leads",
        foreign_keys=[assigned_agent_id],
    )
    referrer: Mapped[Optional["Agent"]] = relationship(
        "Agent",
        foreign_keys=[referrer_id],
    )
    commission: Mapped[Optional["Commission"]] = relationship(
        "Commission",
        back_populates="lead",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, unique_id='{self.unique_id}', status={self.status})>"


class LeadSequence(Base):
    """
    Named monotonic counter.

    Incremented with a single UPDATE ... RETURNING so concurrent lead
    creations serialize on the row instead of racing on max(unique_id).
    """

    __tablename__ = "lead_sequences"

    name: Mapped[str] = mapped_column(
        String(50),
        primary_key=True,
    )
    last_value: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<LeadSequence(name='{self.name}', last_value={self.last_value})>"
