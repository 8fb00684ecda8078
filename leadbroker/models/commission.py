"""
Commission ledger model.
"""

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Numeric
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leadbroker.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from leadbroker.models.agent import Agent
    from leadbroker.models.lead import Lead


class CommissionStatus(str, Enum):
    """Payout status."""
    PENDING = "Pending"
    PAID = "Paid"


class Commission(Base, TimestampMixin):
    """
    Commission earned on an accepted lead.

    Created only by the Accepted transition, one per lead (lead_id is
    unique). Only an admin may change the status afterwards.

    Invariant: referrer_commission + agent_commission == max_commission.
    """

    __tablename__ = "commissions"

    id: Mapped[int] = mapped_column(primary_key=True)
    lead_id: Mapped[int] = mapped_column(
        ForeignKey("leads.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    agent_id: Mapped[int] = mapped_column(
        ForeignKey("agents.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    referrer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("agents.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    loan_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
    )
    max_commission: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
    )
    referrer_commission: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        default=Decimal("0"),
        nullable=False,
    )
    agent_commission: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        default=Decimal("0"),
        nullable=False,
    )

    status: Mapped[CommissionStatus] = mapped_column(
        SQLAlchemyEnum(
            CommissionStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=CommissionStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Relationships
    lead: Mapped["Lead"] = relationship(
        "Lead",
        back_populates="commission",
    )
    agent: Mapped["Agent"] = relationship(
        "Agent",
        foreign_keys=[agent_id],
    )
    referrer: Mapped[Optional["Agent"]] = relationship(
        "Agent",
        foreign_keys=[referrer_id],
    )

    def __repr__(self) -> str:
        return f"<Commission(id={self.id}, lead_id={self.lead_id}, status={self.status})>"
