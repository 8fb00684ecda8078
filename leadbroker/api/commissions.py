"""Commission ledger API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leadbroker.auth.dependencies import get_current_identity, require_admin
from leadbroker.auth.identity import Identity
from leadbroker.config import settings
from leadbroker.db import get_db
from leadbroker.models import Commission, CommissionStatus
from leadbroker.schemas.commission import (
    CommissionListResponse,
    CommissionResponse,
    CommissionStatusUpdate,
)
from leadbroker.services.commission_ledger import list_commissions, update_commission_status
from leadbroker.utils.audit import get_client_ip

router = APIRouter(prefix="/commissions", tags=["Commissions"])


def commission_response(commission: Commission) -> CommissionResponse:
    return CommissionResponse(
        id=commission.id,
        lead_id=commission.lead_id,
        lead_unique_id=commission.lead.unique_id if commission.lead else None,
        agent_id=commission.agent_id,
        agent_name=commission.agent.name if commission.agent else None,
        referrer_id=commission.referrer_id,
        referrer_name=commission.referrer.name if commission.referrer else None,
        loan_amount=commission.loan_amount,
        max_commission=commission.max_commission,
        referrer_commission=commission.referrer_commission,
        agent_commission=commission.agent_commission,
        status=commission.status,
        created_at=commission.created_at,
        updated_at=commission.updated_at,
    )


@router.get("", response_model=CommissionListResponse)
async def get_commissions(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    agent_id: Optional[int] = Query(None),
    status_filter: Optional[CommissionStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1),
):
    """List commissions. Admins see all, everyone else their own."""
    per_page = min(per_page, settings.commissions_max_page_size)
    commissions, total = await list_commissions(
        db,
        identity,
        agent_id=agent_id,
        status=status_filter,
        page=page,
        per_page=per_page,
    )

    return CommissionListResponse(
        items=[commission_response(c) for c in commissions],
        total=total,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page if total else 0,
    )


@router.patch("/{commission_id}", response_model=CommissionResponse)
async def patch_commission(
    commission_id: int,
    request: Request,
    data: CommissionStatusUpdate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    """Mark a commission Paid (or back to Pending)."""
    commission = await update_commission_status(
        db,
        commission_id,
        data.status,
        identity,
        ip_address=get_client_ip(request),
    )
    await db.refresh(commission, attribute_names=["lead", "agent", "referrer", "updated_at"])
    return commission_response(commission)
