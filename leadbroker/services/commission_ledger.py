"""
Commission ledger reads and payout status updates.
"""

import logging
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leadbroker.auth.identity import Identity
from leadbroker.config import settings
from leadbroker.exceptions import Forbidden, NotFoundError
from leadbroker.models import AgentRole, AuditAction, Commission, CommissionStatus
from leadbroker.utils.audit import log_action

logger = logging.getLogger(__name__)


async def list_commissions(
    db: AsyncSession,
    identity: Identity,
    *,
    agent_id: Optional[int] = None,
    status: Optional[CommissionStatus] = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[Sequence[Commission], int]:
    """
    List commissions visible to the requester, newest first.

    Admins see all and may filter by agent. Agents see the commissions
    they earned as the working agent, referrers the ones they are
    credited on.
    """
    page = max(page, 1)
    per_page = min(max(per_page, 1), settings.commissions_max_page_size)

    query = select(Commission).options(
        selectinload(Commission.lead),
        selectinload(Commission.agent),
        selectinload(Commission.referrer),
    )

    if identity.is_admin:
        if agent_id is not None:
            query = query.where(Commission.agent_id == agent_id)
    else:
        if agent_id is not None and agent_id != identity.agent_id:
            raise Forbidden("You can only view your own commissions")
        if identity.role == AgentRole.REFERRER:
            query = query.where(Commission.referrer_id == identity.agent_id)
        else:
            query = query.where(Commission.agent_id == identity.agent_id)

    if status is not None:
        query = query.where(Commission.status == CommissionStatus(status))

    # Count total
    count_query = select(func.count()).select_from(query.subquery())
    total = await db.scalar(count_query)

    query = query.order_by(Commission.created_at.desc(), Commission.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    return result.scalars().all(), total or 0


async def update_commission_status(
    db: AsyncSession,
    commission_id: int,
    new_status: CommissionStatus,
    identity: Identity,
    ip_address: Optional[str] = None,
) -> Commission:
    """Set the payout status of a commission. Admin only."""
    if not identity.is_admin:
        raise Forbidden("Admin access required")

    commission = await db.get(Commission, commission_id)
    if not commission:
        raise NotFoundError(f"Commission {commission_id} not found")

    new_status = CommissionStatus(new_status)
    previous = commission.status
    commission.status = new_status
    await db.flush()

    await log_action(
        db,
        agent_id=identity.agent_id,
        action=AuditAction.UPDATE_COMMISSION,
        target_type="commission",
        target_id=commission.id,
        action_metadata={"from": previous.value, "to": new_status.value},
        ip_address=ip_address,
    )

    logger.info(f"Commission {commission.id} status {previous.value} -> {new_status.value}")
    return commission
