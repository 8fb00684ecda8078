"""
Startup bootstrap: the house agent and the lead display-id counter.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from leadbroker.config import settings
from leadbroker.models import Agent, AgentRole, AgentStatus
from leadbroker.services.agent_directory import create_agent, get_agent_by_referral_code
from leadbroker.services.lead_sequence import ensure_lead_sequence

logger = logging.getLogger(__name__)


async def ensure_house_agent(db: AsyncSession) -> Agent:
    """
    Create the super admin that owns the default referral code.

    Leads without a usable referral code are assigned to this agent.
    """
    agent = await get_agent_by_referral_code(
        db, settings.default_referral_code, include_deleted=True
    )
    if agent:
        if agent.is_deleted or agent.status != AgentStatus.ACTIVE:
            logger.warning(
                f"Default referral agent {agent.id} is not active; "
                "leads without a referral code will be unassigned"
            )
        return agent

    logger.info("Creating super admin account...")
    agent = await create_agent(
        db,
        name=settings.admin_name,
        phone=settings.admin_phone,
        password=settings.admin_password,
        role=AgentRole.ADMIN,
        status=AgentStatus.ACTIVE,
        referral_code=settings.default_referral_code,
    )
    logger.info(f"Super admin created: {settings.admin_phone}")
    return agent


async def bootstrap(db: AsyncSession) -> None:
    """Run every startup initialiser. The caller commits."""
    await ensure_house_agent(db)
    await ensure_lead_sequence(db)
