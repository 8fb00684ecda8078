"""Pydantic request and response schemas."""

from leadbroker.schemas.agent import (
    AgentApproveRequest,
    AgentCreate,
    AgentRegister,
    AgentResponse,
    AgentStatusRequest,
    AgentUpdate,
    ReferrerRegister,
)
from leadbroker.schemas.auth import LoginRequest, LoginResponse
from leadbroker.schemas.commission import (
    CommissionListResponse,
    CommissionResponse,
    CommissionStatusUpdate,
)
from leadbroker.schemas.lead import (
    LeadAssignRequest,
    LeadCreate,
    LeadListResponse,
    LeadResponse,
    LeadStatusUpdate,
)

__all__ = [
    "AgentApproveRequest",
    "AgentCreate",
    "AgentRegister",
    "AgentResponse",
    "AgentStatusRequest",
    "AgentUpdate",
    "CommissionListResponse",
    "CommissionResponse",
    "CommissionStatusUpdate",
    "LeadAssignRequest",
    "LeadCreate",
    "LeadListResponse",
    "LeadResponse",
    "LeadStatusUpdate",
    "LoginRequest",
    "LoginResponse",
    "ReferrerRegister",
]
