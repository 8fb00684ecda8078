"""Agent directory schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from leadbroker.models.agent import AgentRole, AgentStatus


class AgentRegister(BaseModel):
    """Self-registration. The account starts Pending."""

    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=20)
    password: str = Field(..., min_length=6, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=100)
    bank_name: Optional[str] = Field(None, max_length=100)
    account_number: Optional[str] = Field(None, max_length=30)


class ReferrerRegister(BaseModel):
    """Referrer registered by their sponsoring agent."""

    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=20)
    password: str = Field(..., min_length=6, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=100)


class AgentCreate(AgentRegister):
    """Admin-created account. Active immediately."""

    role: AgentRole = AgentRole.AGENT
    referral_code: Optional[str] = Field(None, min_length=1, max_length=50)
    parent_referrer_id: Optional[int] = None


class AgentUpdate(BaseModel):
    """Descriptive fields an admin may change. referral_code is immutable."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, min_length=1, max_length=20)
    password: Optional[str] = Field(None, min_length=6, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=100)
    bank_name: Optional[str] = Field(None, max_length=100)
    account_number: Optional[str] = Field(None, max_length=30)
    referral_code: Optional[str] = None


class AgentApproveRequest(BaseModel):
    """Resolve a pending registration."""

    approved: bool


class AgentStatusRequest(BaseModel):
    """Activate or deactivate an account."""

    active: bool


class AgentResponse(BaseModel):
    """Directory entry. Never includes the password hash."""

    id: int
    name: str
    phone: str
    email: Optional[str]
    location: Optional[str]
    role: AgentRole
    status: AgentStatus
    referral_code: str
    parent_referrer_id: Optional[int]
    bank_name: Optional[str]
    account_number: Optional[str]
    created_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
