"""
Database models for LeadBroker.

All models are exported here for convenient imports:
    from leadbroker.models import Agent, Lead, Commission, etc.
"""

from leadbroker.models.agent import Agent, AgentRole, AgentStatus
from leadbroker.models.audit import AuditAction, AuditLog
from leadbroker.models.base import Base, SoftDeleteMixin, TimestampMixin
from leadbroker.models.commission import Commission, CommissionStatus
from leadbroker.models.lead import (
    LEAD_SEQUENCE_NAME,
    Lead,
    LeadSequence,
    LeadSource,
    LeadStatus,
)

__all__ = [
    # Base
    "Base",
    "SoftDeleteMixin",
    "TimestampMixin",
    # Agent
    "Agent",
    "AgentRole",
    "AgentStatus",
    # Lead
    "Lead",
    "LeadSequence",
    "LeadSource",
    "LeadStatus",
    "LEAD_SEQUENCE_NAME",
    # Commission
    "Commission",
    "CommissionStatus",
    # Audit
    "AuditLog",
    "AuditAction",
]
