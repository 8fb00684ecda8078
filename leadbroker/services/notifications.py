"""
New-lead notifications.

The messaging channel is an injected collaborator. It is invoked after
the lead is committed, as a background task, and its failures are only
logged: a lead is never lost or delayed because a message could not be
sent.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol

from leadbroker.models import Agent, Lead
from leadbroker.utils.formatting import format_currency

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewLeadNotice:
    """Snapshot of what the assigned agent is told about a new lead."""

    agent_id: int
    agent_phone: str
    lead_unique_id: str
    customer_name: str
    customer_phone: str
    loan_amount: Decimal
    new_monthly_repayment: Decimal
    referrer_code: Optional[str]

    @classmethod
    def build(cls, agent: Agent, lead: Lead) -> "NewLeadNotice":
        return cls(
            agent_id=agent.id,
            agent_phone=agent.phone,
            lead_unique_id=lead.unique_id,
            customer_name=lead.name,
            customer_phone=lead.phone,
            loan_amount=lead.loan_amount,
            new_monthly_repayment=lead.new_monthly_repayment,
            referrer_code=lead.referrer_code,
        )

    def render(self) -> str:
        return "\n".join([
            f"New Lead Assigned ({self.lead_unique_id})",
            "",
            "Customer Details:",
            f"- Name: {self.customer_name}",
            f"- Contact: {self.customer_phone}",
            "",
            "Loan Details:",
            f"- Loan Amount: {format_currency(self.loan_amount)}",
            f"- New Monthly Repayment: {format_currency(self.new_monthly_repayment)}",
            "",
            f"Referrer: {self.referrer_code or '-'}",
        ])


class LeadNotifier(Protocol):
    """Outbound channel used to tell an agent about a new lead."""

    async def notify_new_lead(self, notice: NewLeadNotice) -> None:
        ...


class LoggingNotifier:
    """Default channel: writes the message to the application log."""

    async def notify_new_lead(self, notice: NewLeadNotice) -> None:
        logger.info(f"Notify agent {notice.agent_id} at {notice.agent_phone}:\n{notice.render()}")


_notifier: LeadNotifier = LoggingNotifier()


def get_notifier() -> LeadNotifier:
    """FastAPI dependency for the configured notifier (override in tests)."""
    return _notifier


async def send_new_lead_notice(notifier: LeadNotifier, notice: NewLeadNotice) -> None:
    """Deliver a notice, logging instead of raising on failure."""
    try:
        await notifier.notify_new_lead(notice)
    except Exception as e:
        logger.error(
            f"Failed to notify agent {notice.agent_id} about lead {notice.lead_unique_id}: {e}"
        )
