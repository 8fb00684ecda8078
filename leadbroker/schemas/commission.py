"""Commission schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from leadbroker.models.commission import CommissionStatus


class CommissionStatusUpdate(BaseModel):
    """Payout status change (admin only)."""

    status: CommissionStatus


class CommissionResponse(BaseModel):
    """Commission ledger entry."""

    id: int
    lead_id: int
    lead_unique_id: Optional[str] = None
    agent_id: int
    agent_name: Optional[str] = None
    referrer_id: Optional[int]
    referrer_name: Optional[str] = None

    loan_amount: Decimal
    max_commission: Decimal
    referrer_commission: Decimal
    agent_commission: Decimal

    status: CommissionStatus
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class CommissionListResponse(BaseModel):
    """Paginated commission list."""

    items: List[CommissionResponse]
    total: int
    page: int
    per_page: int
    pages: int
