"""
Tests for referral resolution.

Covers:
- Default code and missing code fall back to the house agent
- Referrer codes assign the lead to the sponsoring agent
- Unknown, inactive and deleted codes leave the lead unassigned
- Store failures surface as DirectoryUnavailable
"""

import pytest
from sqlalchemy.exc import DBAPIError

from leadbroker.config import settings
from leadbroker.exceptions import DirectoryUnavailable
from leadbroker.models import AgentRole, AgentStatus
from leadbroker.services.referral import UNASSIGNED, ReferralResolution, resolve_referral


class TestDefaultFallback:
    async def test_no_code_uses_house_agent(self, db_session, house_agent):
        result = await resolve_referral(db_session, None)
        assert result == ReferralResolution(house_agent.id, house_agent.id)

    async def test_blank_code_uses_house_agent(self, db_session, house_agent):
        result = await resolve_referral(db_session, "   ")
        assert result.assigned_agent_id == house_agent.id

    async def test_default_code_uses_house_agent(self, db_session, house_agent):
        result = await resolve_referral(db_session, settings.default_referral_code)
        assert result == ReferralResolution(house_agent.id, house_agent.id)

    async def test_missing_house_agent_leaves_lead_unassigned(self, db_session):
        result = await resolve_referral(db_session, None)
        assert result == UNASSIGNED
        assert not result.is_assigned

    async def test_inactive_house_agent_leaves_lead_unassigned(self, db_session, make_agent):
        await make_agent(
            role=AgentRole.ADMIN,
            status=AgentStatus.INACTIVE,
            referral_code=settings.default_referral_code,
        )
        assert await resolve_referral(db_session, None) == UNASSIGNED


class TestReferralCodes:
    async def test_agent_code_assigns_and_credits_agent(self, db_session, make_agent):
        agent = await make_agent()
        result = await resolve_referral(db_session, agent.referral_code)
        assert result == ReferralResolution(agent.id, agent.id)

    async def test_admin_code_assigns_admin(self, db_session, make_agent):
        admin = await make_agent(role=AgentRole.ADMIN)
        result = await resolve_referral(db_session, admin.referral_code)
        assert result == ReferralResolution(admin.id, admin.id)

    async def test_referrer_code_assigns_sponsor(self, db_session, make_agent):
        sponsor = await make_agent()
        referrer = await make_agent(role=AgentRole.REFERRER, parent_referrer_id=sponsor.id)

        result = await resolve_referral(db_session, referrer.referral_code)

        assert result.assigned_agent_id == sponsor.id
        assert result.referrer_id == referrer.id

    async def test_referrer_without_sponsor_is_assigned(self, db_session, make_agent):
        referrer = await make_agent(role=AgentRole.REFERRER)
        result = await resolve_referral(db_session, referrer.referral_code)
        assert result == ReferralResolution(referrer.id, referrer.id)

    async def test_referrer_with_inactive_sponsor_is_assigned(self, db_session, make_agent):
        sponsor = await make_agent(status=AgentStatus.INACTIVE)
        referrer = await make_agent(role=AgentRole.REFERRER, parent_referrer_id=sponsor.id)

        result = await resolve_referral(db_session, referrer.referral_code)

        assert result == ReferralResolution(referrer.id, referrer.id)

    async def test_referrer_with_deleted_sponsor_is_assigned(self, db_session, make_agent):
        sponsor = await make_agent()
        referrer = await make_agent(role=AgentRole.REFERRER, parent_referrer_id=sponsor.id)
        sponsor.soft_delete()
        await db_session.flush()

        result = await resolve_referral(db_session, referrer.referral_code)

        assert result == ReferralResolution(referrer.id, referrer.id)

    async def test_code_is_stripped(self, db_session, make_agent):
        agent = await make_agent()
        result = await resolve_referral(db_session, f"  {agent.referral_code} ")
        assert result.assigned_agent_id == agent.id


class TestUnusableCodes:
    async def test_unknown_code(self, db_session, house_agent):
        """An unknown code does not fall back to the house agent."""
        assert await resolve_referral(db_session, "REF-NOPE") == UNASSIGNED

    @pytest.mark.parametrize(
        "status",
        [AgentStatus.PENDING, AgentStatus.INACTIVE, AgentStatus.REJECTED],
    )
    async def test_non_active_agent_code(self, db_session, make_agent, status):
        agent = await make_agent(status=status)
        assert await resolve_referral(db_session, agent.referral_code) == UNASSIGNED

    async def test_deleted_agent_code(self, db_session, make_agent):
        agent = await make_agent()
        agent.soft_delete()
        await db_session.flush()

        assert await resolve_referral(db_session, agent.referral_code) == UNASSIGNED


class _FailingSession:
    async def execute(self, *args, **kwargs):
        raise DBAPIError("SELECT", {}, Exception("connection refused"))


async def test_store_failure_raises_directory_unavailable():
    with pytest.raises(DirectoryUnavailable):
        await resolve_referral(_FailingSession(), "REF-ANY")
