"""Lead API endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadbroker.auth.dependencies import get_current_identity, require_admin, require_api_key
from leadbroker.auth.identity import Identity
from leadbroker.config import settings
from leadbroker.db import get_db
from leadbroker.models import Lead, LeadStatus
from leadbroker.schemas.lead import (
    LeadAssignRequest,
    LeadCreate,
    LeadListResponse,
    LeadResponse,
    LeadStatusUpdate,
)
from leadbroker.services.agent_directory import get_agent
from leadbroker.services.lead_service import (
    create_lead,
    get_lead,
    list_leads,
    reassign_lead,
    soft_delete_lead,
    update_lead_status,
)
from leadbroker.services.notifications import (
    LeadNotifier,
    NewLeadNotice,
    get_notifier,
    send_new_lead_notice,
)
from leadbroker.utils.audit import get_client_ip

router = APIRouter(prefix="/leads", tags=["Leads"])


def lead_response(lead: Lead) -> LeadResponse:
    return LeadResponse(
        id=lead.id,
        unique_id=lead.unique_id,
        name=lead.name,
        phone=lead.phone,
        bank_name=lead.bank_name,
        loan_amount=lead.loan_amount,
        estimated_savings=lead.estimated_savings,
        monthly_savings=lead.monthly_savings,
        yearly_savings=lead.yearly_savings,
        new_monthly_repayment=lead.new_monthly_repayment,
        status=lead.status,
        source=lead.source,
        assigned_agent_id=lead.assigned_agent_id,
        assigned_agent_name=lead.agent.name if lead.agent else None,
        referrer_id=lead.referrer_id,
        referrer_name=lead.referrer.name if lead.referrer else None,
        referrer_code=lead.referrer_code,
        created_at=lead.created_at,
        updated_at=lead.updated_at,
    )


@router.post("", response_model=LeadResponse, status_code=status.HTTP_201_CREATED)
async def post_lead(
    request: Request,
    data: LeadCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    notifier: LeadNotifier = Depends(get_notifier),
    _: None = Depends(require_api_key),
):
    """
    Create a lead from the intake integration.

    The assigned agent is notified in the background once the lead is
    stored; notification failures never fail the request.
    """
    lead = await create_lead(
        db,
        name=data.name,
        phone=data.phone,
        referral_code=data.referral_code,
        bank_name=data.bank_name,
        ip_address=get_client_ip(request),
        loan_amount=data.loan_amount,
        estimated_savings=data.estimated_savings,
        monthly_savings=data.monthly_savings,
        yearly_savings=data.yearly_savings,
        new_monthly_repayment=data.new_monthly_repayment,
    )
    await db.refresh(lead, attribute_names=["agent", "referrer", "updated_at"])

    if lead.assigned_agent_id is not None:
        agent = await get_agent(db, lead.assigned_agent_id, include_deleted=False)
        if agent:
            background_tasks.add_task(
                send_new_lead_notice, notifier, NewLeadNotice.build(agent, lead)
            )

    return lead_response(lead)


@router.get("", response_model=LeadListResponse)
async def get_leads(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    status_filter: Optional[LeadStatus] = Query(None, alias="status"),
    assigned_agent_id: Optional[int] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1),
):
    """List leads. Non-admins only see leads assigned to them."""
    per_page = min(per_page, settings.leads_max_page_size)
    leads, total = await list_leads(
        db,
        identity,
        status=status_filter,
        assigned_agent_id=assigned_agent_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        per_page=per_page,
    )

    return LeadListResponse(
        items=[lead_response(lead) for lead in leads],
        total=total,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page if total else 0,
    )


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead_detail(
    lead_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Get a single lead."""
    lead = await get_lead(db, lead_id, identity)
    return lead_response(lead)


@router.patch("/{lead_id}/status", response_model=LeadResponse)
async def patch_lead_status(
    lead_id: int,
    request: Request,
    data: LeadStatusUpdate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """
    Change a lead's status.

    Moving to Accepted requires loan_amount and books the commission in
    the same transaction.
    """
    lead, _ = await update_lead_status(
        db,
        lead_id,
        data.status,
        identity,
        loan_amount=data.loan_amount,
        ip_address=get_client_ip(request),
    )
    await db.refresh(lead, attribute_names=["agent", "referrer", "updated_at"])
    return lead_response(lead)


@router.post("/{lead_id}/assign", response_model=LeadResponse)
async def assign_lead(
    lead_id: int,
    request: Request,
    data: LeadAssignRequest,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    """Reassign a lead to another agent."""
    lead = await reassign_lead(
        db,
        lead_id,
        data.agent_id,
        identity,
        ip_address=get_client_ip(request),
    )
    await db.refresh(lead, attribute_names=["agent", "referrer", "updated_at"])
    return lead_response(lead)


@router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lead(
    lead_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    """Soft delete a lead."""
    await soft_delete_lead(db, lead_id, identity, ip_address=get_client_ip(request))
