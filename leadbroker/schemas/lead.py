"""Lead schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from leadbroker.models.lead import LeadStatus


class LeadCreate(BaseModel):
    """Inbound lead submission from the intake integration."""

    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=20)
    referral_code: Optional[str] = Field(None, max_length=50)
    bank_name: Optional[str] = Field(None, max_length=100)

    loan_amount: Decimal = Field(default=Decimal("0"), ge=0)
    estimated_savings: Decimal = Field(default=Decimal("0"), ge=0)
    monthly_savings: Decimal = Field(default=Decimal("0"), ge=0)
    yearly_savings: Decimal = Field(default=Decimal("0"), ge=0)
    new_monthly_repayment: Decimal = Field(default=Decimal("0"), ge=0)


class LeadStatusUpdate(BaseModel):
    """
    Status change request.

    loan_amount is the final approved amount and is required when the
    new status is Accepted. It is validated by the commission service so
    that a missing or invalid amount maps to the domain error.
    """

    status: LeadStatus
    loan_amount: Any = None


class LeadAssignRequest(BaseModel):
    """Reassign a lead (admin only)."""

    agent_id: int


class LeadResponse(BaseModel):
    """Lead as returned to agents and admins."""

    id: int
    unique_id: str
    name: str
    phone: str
    bank_name: Optional[str]

    loan_amount: Decimal
    estimated_savings: Decimal
    monthly_savings: Decimal
    yearly_savings: Decimal
    new_monthly_repayment: Decimal

    status: LeadStatus
    source: str

    assigned_agent_id: Optional[int]
    assigned_agent_name: Optional[str] = None
    referrer_id: Optional[int]
    referrer_name: Optional[str] = None
    referrer_code: Optional[str]

    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class LeadListResponse(BaseModel):
    """Paginated lead list."""

    items: List[LeadResponse]
    total: int
    page: int
    per_page: int
    pages: int
