"""
Lead intake and lead management.

Creation resolves the referral code, takes the next display id and
writes the lead in one unit of work. Reads are scoped by the requester:
admins see every lead, everyone else only the leads assigned to them.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leadbroker.auth.identity import Identity
from leadbroker.config import settings
from leadbroker.exceptions import Forbidden, NotFoundError, ValidationError
from leadbroker.models import (
    AgentRole,
    AuditAction,
    Commission,
    Lead,
    LeadSource,
    LeadStatus,
)
from leadbroker.services.agent_directory import get_agent
from leadbroker.services.lead_sequence import format_unique_id, next_lead_number
from leadbroker.services.lead_status import apply_transition
from leadbroker.services.referral import resolve_referral
from leadbroker.utils.audit import log_action

logger = logging.getLogger(__name__)

FINANCIAL_FIELDS = (
    "loan_amount",
    "estimated_savings",
    "monthly_savings",
    "yearly_savings",
    "new_monthly_repayment",
)


def _to_amount(field: str, value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value))
    except ArithmeticError:
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")
    if amount < 0:
        raise ValidationError(f"{field} must not be negative")
    return amount


async def create_lead(
    db: AsyncSession,
    *,
    name: str,
    phone: str,
    referral_code: Optional[str] = None,
    bank_name: Optional[str] = None,
    source: str = LeadSource.WHATSAPP.value,
    ip_address: Optional[str] = None,
    **financials: Any,
) -> Lead:
    """
    Create a lead from an inbound submission.

    An unresolvable referral code does not fail the submission; the lead
    is stored unassigned. The lead is flushed, the caller commits.

    Args:
        db: Database session
        name: Customer name
        phone: Customer phone number
        referral_code: Code carried by the referral link, may be empty
        bank_name: Customer's current bank
        source: Intake channel
        ip_address: Submitting client address, for the audit trail
        **financials: loan_amount, estimated_savings, monthly_savings,
            yearly_savings, new_monthly_repayment

    Raises:
        ValidationError: missing name/phone or non-numeric amount
        DirectoryUnavailable: referral lookup failed
    """
    name = (name or "").strip()
    phone = (phone or "").strip()
    if not name or not phone:
        raise ValidationError("Name and phone are required")

    unknown = set(financials) - set(FINANCIAL_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown lead fields: {', '.join(sorted(unknown))}")
    amounts = {field: _to_amount(field, financials.get(field)) for field in FINANCIAL_FIELDS}

    resolution = await resolve_referral(db, referral_code)
    number = await next_lead_number(db)

    lead = Lead(
        unique_id=format_unique_id(number),
        name=name,
        phone=phone,
        bank_name=bank_name,
        status=LeadStatus.NEW,
        source=source,
        assigned_agent_id=resolution.assigned_agent_id,
        referrer_id=resolution.referrer_id,
        referrer_code=referral_code,
        **amounts,
    )
    db.add(lead)
    await db.flush()

    await log_action(
        db,
        agent_id=None,
        action=AuditAction.CREATE_LEAD,
        target_type="lead",
        target_id=lead.id,
        action_metadata={
            "unique_id": lead.unique_id,
            "assigned_agent_id": lead.assigned_agent_id,
            "referrer_id": lead.referrer_id,
            "referral_code": referral_code,
        },
        ip_address=ip_address,
    )

    if resolution.is_assigned:
        logger.info(
            f"Lead {lead.unique_id} created, assigned to agent {lead.assigned_agent_id} "
            f"(referrer {lead.referrer_id})"
        )
    else:
        logger.warning(f"Lead {lead.unique_id} created without an assigned agent")

    return lead


def _visible_to(query, identity: Identity):
    if identity.is_admin:
        return query
    return query.where(Lead.assigned_agent_id == identity.agent_id)


async def list_leads(
    db: AsyncSession,
    identity: Identity,
    *,
    status: Optional[LeadStatus] = None,
    assigned_agent_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    per_page: int = 20,
    include_deleted: bool = False,
) -> tuple[Sequence[Lead], int]:
    """
    List leads visible to the requester, newest first.

    Non-admins are always restricted to their own leads; asking for
    another agent's leads is refused rather than silently narrowed.

    Returns:
        (leads on the requested page, total matching count)
    """
    if not identity.is_admin:
        if assigned_agent_id is not None and assigned_agent_id != identity.agent_id:
            raise Forbidden("You can only view your own leads")
        include_deleted = False

    page = max(page, 1)
    per_page = min(max(per_page, 1), settings.leads_max_page_size)

    query = select(Lead).options(selectinload(Lead.agent), selectinload(Lead.referrer))
    query = _visible_to(query, identity)

    if not include_deleted:
        query = query.where(Lead.deleted_at.is_(None))
    if status is not None:
        query = query.where(Lead.status == LeadStatus(status))
    if assigned_agent_id is not None:
        query = query.where(Lead.assigned_agent_id == assigned_agent_id)
    if start_date:
        query = query.where(Lead.created_at >= start_date)
    if end_date:
        query = query.where(Lead.created_at <= end_date)

    # Count total
    count_query = select(func.count()).select_from(query.subquery())
    total = await db.scalar(count_query)

    # Apply sorting and pagination
    query = query.order_by(Lead.created_at.desc(), Lead.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    return result.scalars().all(), total or 0


async def get_lead(
    db: AsyncSession,
    lead_id: int,
    identity: Identity,
    *,
    include_deleted: bool = False,
) -> Lead:
    """
    Get a single lead the requester may see.

    Raises:
        NotFoundError: no such lead, or it is soft-deleted and deleted
            rows were not asked for by an admin
        Forbidden: lead belongs to another agent
    """
    query = (
        select(Lead)
        .options(selectinload(Lead.agent), selectinload(Lead.referrer))
        .where(Lead.id == lead_id)
    )
    if not (include_deleted and identity.is_admin):
        query = query.where(Lead.deleted_at.is_(None))

    result = await db.execute(query)
    lead = result.scalar_one_or_none()
    if not lead:
        raise NotFoundError(f"Lead {lead_id} not found")

    if not identity.is_admin and lead.assigned_agent_id != identity.agent_id:
        raise Forbidden("You can only view your own leads")

    return lead


async def update_lead_status(
    db: AsyncSession,
    lead_id: int,
    new_status: LeadStatus,
    identity: Identity,
    loan_amount: Any = None,
    ip_address: Optional[str] = None,
) -> tuple[Lead, Optional[Commission]]:
    """
    Move a lead to a new status, booking the commission on acceptance.

    The lead row is locked and re-read so the transition is checked
    against the committed status, not a copy loaded earlier in the session.

    Returns:
        (updated lead, commission created by this call or None)
    """
    result = await db.execute(
        select(Lead)
        .where(Lead.id == lead_id)
        .where(Lead.deleted_at.is_(None))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    lead = result.scalar_one_or_none()
    if not lead:
        raise NotFoundError(f"Lead {lead_id} not found")

    previous = lead.status
    commission = await apply_transition(db, lead, new_status, identity, loan_amount)

    await log_action(
        db,
        agent_id=identity.agent_id,
        action=AuditAction.UPDATE_LEAD_STATUS,
        target_type="lead",
        target_id=lead.id,
        action_metadata={"from": previous.value, "to": lead.status.value},
        ip_address=ip_address,
    )

    if commission:
        await log_action(
            db,
            agent_id=identity.agent_id,
            action=AuditAction.CREATE_COMMISSION,
            target_type="commission",
            target_id=commission.id,
            action_metadata={
                "lead_id": lead.id,
                "loan_amount": str(commission.loan_amount),
                "max_commission": str(commission.max_commission),
            },
            ip_address=ip_address,
        )

    return lead, commission


async def reassign_lead(
    db: AsyncSession,
    lead_id: int,
    agent_id: int,
    identity: Identity,
    ip_address: Optional[str] = None,
) -> Lead:
    """
    Hand a lead to another agent. Admin only.

    The referrer credit is left untouched.
    """
    if not identity.is_admin:
        raise Forbidden("Admin access required")

    lead = await db.get(Lead, lead_id)
    if not lead or lead.is_deleted:
        raise NotFoundError(f"Lead {lead_id} not found")

    agent = await get_agent(db, agent_id, include_deleted=False)
    if not agent:
        raise NotFoundError(f"Agent {agent_id} not found")
    if agent.role == AgentRole.REFERRER or not agent.is_active:
        raise ValidationError("Leads can only be assigned to active agents")

    previous_agent_id = lead.assigned_agent_id
    lead.assigned_agent_id = agent.id
    await db.flush()

    await log_action(
        db,
        agent_id=identity.agent_id,
        action=AuditAction.ASSIGN_LEAD,
        target_type="lead",
        target_id=lead.id,
        action_metadata={"from_agent_id": previous_agent_id, "to_agent_id": agent.id},
        ip_address=ip_address,
    )

    logger.info(f"Lead {lead.unique_id} reassigned {previous_agent_id} -> {agent.id}")
    return lead


async def soft_delete_lead(
    db: AsyncSession,
    lead_id: int,
    identity: Identity,
    ip_address: Optional[str] = None,
) -> Lead:
    """Logically remove a lead. Admin only. Its display id stays reserved."""
    if not identity.is_admin:
        raise Forbidden("Admin access required")

    lead = await db.get(Lead, lead_id)
    if not lead or lead.is_deleted:
        raise NotFoundError(f"Lead {lead_id} not found")

    lead.soft_delete()
    await db.flush()

    await log_action(
        db,
        agent_id=identity.agent_id,
        action=AuditAction.DELETE_LEAD,
        target_type="lead",
        target_id=lead.id,
        action_metadata={"unique_id": lead.unique_id},
        ip_address=ip_address,
    )

    logger.info(f"Lead {lead.unique_id} soft-deleted by {identity.agent_id}")
    return lead
