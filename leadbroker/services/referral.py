"""
Referral resolution for inbound leads.

Maps the referral code submitted with a lead to the agent who works the
lead and the agent credited for it:

- no code, or the default code      -> house agent works and is credited
- code of a Referrer                -> sponsoring agent works, referrer credited
- code of an Agent/Admin            -> that agent works and is credited
- unknown or unusable code          -> lead stays unassigned

A missing match never raises; only store failures do (DirectoryUnavailable).
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from leadbroker.config import settings
from leadbroker.models import Agent, AgentRole
from leadbroker.services.agent_directory import get_agent, get_agent_by_referral_code

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferralResolution:
    """Outcome of resolving a referral code."""

    assigned_agent_id: Optional[int] = None
    referrer_id: Optional[int] = None

    @property
    def is_assigned(self) -> bool:
        return self.assigned_agent_id is not None


UNASSIGNED = ReferralResolution()


async def _find_usable_agent(db: AsyncSession, referral_code: str) -> Optional[Agent]:
    agent = await get_agent_by_referral_code(db, referral_code, include_deleted=False)
    if agent and not agent.is_active:
        logger.warning(
            f"Referral code {referral_code} belongs to agent {agent.id} "
            f"with status {agent.status.value}, ignoring"
        )
        return None
    return agent


async def _resolve_default(db: AsyncSession) -> ReferralResolution:
    house_agent = await _find_usable_agent(db, settings.default_referral_code)
    if not house_agent:
        logger.warning("Default referral agent not found, lead will be unassigned")
        return UNASSIGNED
    return ReferralResolution(assigned_agent_id=house_agent.id, referrer_id=house_agent.id)


async def resolve_referral(
    db: AsyncSession,
    referral_code: Optional[str],
) -> ReferralResolution:
    """
    Resolve a referral code to (assigned_agent_id, referrer_id).

    Args:
        db: Database session
        referral_code: Code as submitted with the lead, may be None or blank

    Returns:
        ReferralResolution, UNASSIGNED when the code cannot be used
    """
    code = (referral_code or "").strip()
    if not code or code == settings.default_referral_code:
        return await _resolve_default(db)

    agent = await _find_usable_agent(db, code)
    if not agent:
        logger.warning(f"No agent found for referral code: {code}")
        return UNASSIGNED

    if agent.role == AgentRole.REFERRER:
        assigned_agent_id = agent.id
        if agent.parent_referrer_id is not None:
            sponsor = await get_agent(db, agent.parent_referrer_id, include_deleted=False)
            if sponsor and sponsor.is_active:
                assigned_agent_id = sponsor.id
            else:
                logger.warning(
                    f"Sponsor {agent.parent_referrer_id} of referrer {agent.id} "
                    "is not active, assigning lead to the referrer"
                )
        return ReferralResolution(assigned_agent_id=assigned_agent_id, referrer_id=agent.id)

    return ReferralResolution(assigned_agent_id=agent.id, referrer_id=agent.id)
