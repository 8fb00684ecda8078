"""
Lead status state machine.

Agents move their own leads along the pipeline:

    New -> Contacted | Preparing Documents | Submitted
    Contacted -> Preparing Documents | Submitted
    Preparing Documents -> Submitted
    Submitted -> Approved | KIV | Rejected
    KIV -> Preparing Documents | Submitted
    Approved -> Accepted | Rejected

Accepted and Rejected are terminal for agents. Admins may set any status
from any status to correct misrouted leads. Entering Accepted needs an
assigned agent and books the commission in the same transaction as the
status change.
"""

import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadbroker.auth.identity import Identity
from leadbroker.exceptions import (
    Forbidden,
    InvalidTransition,
    MissingLoanAmount,
    ValidationError,
)
from leadbroker.models import AgentRole, Commission, CommissionStatus, Lead, LeadStatus
from leadbroker.services.commission import calculate_commission, parse_loan_amount

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[LeadStatus, frozenset[LeadStatus]] = {
    LeadStatus.NEW: frozenset({
        LeadStatus.CONTACTED,
        LeadStatus.PREPARING_DOCUMENTS,
        LeadStatus.SUBMITTED,
    }),
    LeadStatus.CONTACTED: frozenset({
        LeadStatus.PREPARING_DOCUMENTS,
        LeadStatus.SUBMITTED,
    }),
    LeadStatus.PREPARING_DOCUMENTS: frozenset({
        LeadStatus.SUBMITTED,
    }),
    LeadStatus.SUBMITTED: frozenset({
        LeadStatus.APPROVED,
        LeadStatus.KIV,
        LeadStatus.REJECTED,
    }),
    LeadStatus.KIV: frozenset({
        LeadStatus.PREPARING_DOCUMENTS,
        LeadStatus.SUBMITTED,
    }),
    LeadStatus.APPROVED: frozenset({
        LeadStatus.ACCEPTED,
        LeadStatus.REJECTED,
    }),
    LeadStatus.ACCEPTED: frozenset(),
    LeadStatus.REJECTED: frozenset(),
}

TERMINAL_STATUSES = frozenset({LeadStatus.ACCEPTED, LeadStatus.REJECTED})


def allowed_next_statuses(current: LeadStatus) -> frozenset[LeadStatus]:
    """Statuses an agent may move a lead to from ``current``."""
    return ALLOWED_TRANSITIONS.get(LeadStatus(current), frozenset())


def authorize_transition(
    current: LeadStatus,
    new: LeadStatus,
    requester_role: Optional[AgentRole],
    assigned_agent_id: Optional[int],
    requester_id: Optional[int],
) -> None:
    """
    Check a status change, raising on refusal.

    Raises:
        Forbidden: requester role or lead ownership does not allow it
        InvalidTransition: the agent graph does not allow it
    """
    if requester_role == AgentRole.ADMIN:
        return

    if requester_role != AgentRole.AGENT:
        raise Forbidden("Only admins and agents can change lead status")

    if assigned_agent_id is None or requester_id != assigned_agent_id:
        raise Forbidden("Agents can only update their own leads")

    current = LeadStatus(current)
    new = LeadStatus(new)
    if new not in allowed_next_statuses(current):
        raise InvalidTransition(current.value, new.value)


def can_transition(
    current: LeadStatus,
    new: LeadStatus,
    requester_role: Optional[AgentRole],
    assigned_agent_id: Optional[int],
    requester_id: Optional[int],
) -> bool:
    """Boolean form of authorize_transition."""
    try:
        authorize_transition(current, new, requester_role, assigned_agent_id, requester_id)
    except (Forbidden, InvalidTransition):
        return False
    return True


async def apply_transition(
    db: AsyncSession,
    lead: Lead,
    new_status: LeadStatus,
    identity: Identity,
    loan_amount: Any = None,
) -> Optional[Commission]:
    """
    Validate and apply a status change to a lead.

    Changes are flushed but not committed; the caller's unit of work
    commits the status and the commission together or not at all.

    Args:
        db: Database session
        lead: Lead to update
        new_status: Requested status
        identity: Verified requester
        loan_amount: Final loan amount, required when accepting

    Returns:
        The Commission created by an Accepted transition, otherwise None

    Raises:
        Forbidden, InvalidTransition, MissingLoanAmount, InvalidLoanAmount,
        ValidationError (accepting a lead with no assigned agent)
    """
    new_status = LeadStatus(new_status)
    previous = lead.status

    authorize_transition(
        previous,
        new_status,
        identity.role,
        lead.assigned_agent_id,
        identity.agent_id,
    )

    commission = None
    if new_status == LeadStatus.ACCEPTED:
        if lead.assigned_agent_id is None:
            raise ValidationError("Assign the lead to an agent before accepting it")
        if loan_amount is None or loan_amount == "":
            raise MissingLoanAmount()
        amount = parse_loan_amount(loan_amount)
        commission = await _book_commission(db, lead, amount)

    lead.status = new_status
    await db.flush()

    logger.info(
        f"Lead {lead.unique_id} status {previous.value} -> {new_status.value} "
        f"by {identity.role.value} {identity.agent_id}"
    )
    return commission


async def _book_commission(db: AsyncSession, lead: Lead, loan_amount) -> Optional[Commission]:
    """Create the lead's commission unless one already exists."""
    existing = await db.execute(
        select(Commission).where(Commission.lead_id == lead.id)
    )
    if existing.scalar_one_or_none():
        logger.warning(f"Lead {lead.unique_id} already has a commission, not creating another")
        return None

    split = calculate_commission(loan_amount, has_referrer=lead.referrer_id is not None)

    commission = Commission(
        lead_id=lead.id,
        agent_id=lead.assigned_agent_id,
        referrer_id=lead.referrer_id,
        loan_amount=loan_amount,
        max_commission=split.max_commission,
        referrer_commission=split.referrer_commission,
        agent_commission=split.agent_commission,
        status=CommissionStatus.PENDING,
    )
    db.add(commission)

    logger.info(
        f"Commission booked for lead {lead.unique_id}: max={split.max_commission} "
        f"agent={split.agent_commission} referrer={split.referrer_commission}"
    )
    return commission
