"""
Tests for the agent directory write path.

Covers:
- Referral code generation and immutability
- Phone/email uniqueness including soft-deleted agents
- Approval and activation lifecycle
- Referrer registration under a sponsor
"""

import pytest

from leadbroker.config import settings
from leadbroker.exceptions import ConflictError, NotFoundError, ValidationError
from leadbroker.models import AgentRole, AgentStatus
from leadbroker.services import agent_directory
from leadbroker.services.agent_directory import (
    approve_agent,
    create_agent,
    generate_referral_code,
    get_agent,
    list_agents,
    register_referrer,
    set_agent_active,
    soft_delete_agent,
    update_agent,
)
from leadbroker.utils.password import verify_password


async def _create(db_session, phone="60120000001", **kwargs):
    return await create_agent(
        db_session,
        name=kwargs.pop("name", "Farah"),
        phone=phone,
        password=kwargs.pop("password", "secret123"),
        **kwargs,
    )


# ── create_agent ──────────────────────────────────────────


class TestCreateAgent:
    async def test_generates_referral_code_and_hashes_password(self, db_session):
        agent = await _create(db_session)

        assert agent.referral_code.startswith(settings.referral_code_prefix)
        assert len(agent.referral_code) == len(settings.referral_code_prefix) + 8
        assert agent.password_hash != "secret123"
        assert verify_password("secret123", agent.password_hash)
        assert agent.status == AgentStatus.PENDING
        assert agent.role == AgentRole.AGENT
        assert agent.location == "Unknown"

    async def test_supplied_referral_code_must_be_unique(self, db_session, make_agent):
        existing = await make_agent()
        with pytest.raises(ConflictError):
            await _create(db_session, referral_code=existing.referral_code)

    async def test_duplicate_phone(self, db_session, make_agent):
        existing = await make_agent()
        with pytest.raises(ConflictError, match="Phone number already in use"):
            await _create(db_session, phone=existing.phone)

    async def test_phone_of_deleted_agent_stays_reserved(self, db_session, make_agent):
        existing = await make_agent()
        existing.soft_delete()
        await db_session.flush()

        with pytest.raises(ConflictError, match="deleted agent"):
            await _create(db_session, phone=existing.phone)

    async def test_duplicate_email(self, db_session):
        await _create(db_session, phone="60120000001", email="a@example.com")
        with pytest.raises(ConflictError, match="Email"):
            await _create(db_session, phone="60120000002", email="a@example.com")

    async def test_requires_password(self, db_session):
        with pytest.raises(ValidationError):
            await _create(db_session, password="")

    async def test_unknown_sponsor(self, db_session):
        with pytest.raises(NotFoundError):
            await _create(db_session, parent_referrer_id=9999)


class TestGenerateReferralCode:
    async def test_gives_up_after_max_attempts(self, db_session, make_agent, monkeypatch):
        taken = await make_agent(referral_code="REF-DEADBEEF")
        monkeypatch.setattr(agent_directory.secrets, "token_hex", lambda n: "deadbeef")

        with pytest.raises(ConflictError):
            await generate_referral_code(db_session)

        assert taken.referral_code == "REF-DEADBEEF"

    async def test_retries_on_collision(self, db_session, make_agent, monkeypatch):
        await make_agent(referral_code="REF-DEADBEEF")
        candidates = iter(["deadbeef", "cafef00d"])
        monkeypatch.setattr(agent_directory.secrets, "token_hex", lambda n: next(candidates))

        assert await generate_referral_code(db_session) == "REF-CAFEF00D"


# ── update_agent ──────────────────────────────────────────


class TestUpdateAgent:
    async def test_updates_descriptive_fields(self, db_session, make_agent):
        agent = await make_agent()
        await update_agent(db_session, agent, {"name": "New Name", "bank_name": "Maybank"})
        assert agent.name == "New Name"
        assert agent.bank_name == "Maybank"

    async def test_referral_code_is_immutable(self, db_session, make_agent):
        agent = await make_agent()
        original = agent.referral_code

        with pytest.raises(ConflictError):
            await update_agent(db_session, agent, {"referral_code": "REF-NEW"})

        assert agent.referral_code == original

    async def test_same_referral_code_is_accepted(self, db_session, make_agent):
        agent = await make_agent()
        await update_agent(db_session, agent, {"referral_code": agent.referral_code, "name": "X"})
        assert agent.name == "X"

    async def test_password_is_rehashed(self, db_session, make_agent):
        agent = await make_agent()
        await update_agent(db_session, agent, {"password": "another-secret"})
        assert verify_password("another-secret", agent.password_hash)

    async def test_phone_clash(self, db_session, make_agent):
        agent = await make_agent()
        other = await make_agent()
        with pytest.raises(ConflictError):
            await update_agent(db_session, agent, {"phone": other.phone})

    async def test_unknown_field(self, db_session, make_agent):
        agent = await make_agent()
        with pytest.raises(ValidationError):
            await update_agent(db_session, agent, {"role": "Admin"})


# ── lifecycle ─────────────────────────────────────────────


class TestLifecycle:
    async def test_approve_once(self, db_session, make_agent):
        agent = await make_agent(status=AgentStatus.PENDING)

        approve_agent(agent, approved=True)
        assert agent.status == AgentStatus.ACTIVE

        with pytest.raises(ConflictError):
            approve_agent(agent, approved=False)

    async def test_reject(self, db_session, make_agent):
        agent = await make_agent(status=AgentStatus.PENDING)
        approve_agent(agent, approved=False)
        assert agent.status == AgentStatus.REJECTED

    async def test_toggle_active(self, db_session, make_agent):
        agent = await make_agent()

        set_agent_active(agent, False)
        assert agent.status == AgentStatus.INACTIVE
        set_agent_active(agent, True)
        assert agent.status == AgentStatus.ACTIVE

    async def test_pending_cannot_be_toggled(self, db_session, make_agent):
        agent = await make_agent(status=AgentStatus.PENDING)
        with pytest.raises(ConflictError):
            set_agent_active(agent, True)

    async def test_soft_delete_hides_from_default_lookups(self, db_session, make_agent):
        agent = await make_agent()
        soft_delete_agent(agent)
        await db_session.flush()

        assert await get_agent(db_session, agent.id, include_deleted=False) is None
        assert await get_agent(db_session, agent.id, include_deleted=True) is agent
        assert agent not in await list_agents(db_session, include_deleted=False)

    async def test_house_agent_cannot_be_deleted(self, house_agent):
        with pytest.raises(ConflictError):
            soft_delete_agent(house_agent)


class TestRegisterReferrer:
    async def test_referrer_is_pending_under_sponsor(self, db_session, make_agent):
        sponsor = await make_agent()

        referrer = await register_referrer(
            db_session, sponsor, name="Gopal", phone="60177777777", password="secret123"
        )

        assert referrer.role == AgentRole.REFERRER
        assert referrer.status == AgentStatus.PENDING
        assert referrer.parent_referrer_id == sponsor.id
        assert referrer in await list_agents(
            db_session, include_deleted=False, parent_referrer_id=sponsor.id
        )

    async def test_referrer_cannot_sponsor(self, db_session, make_agent):
        referrer = await make_agent(role=AgentRole.REFERRER)
        with pytest.raises(ValidationError):
            await register_referrer(
                db_session, referrer, name="Hana", phone="60177777778", password="secret123"
            )

    async def test_inactive_sponsor(self, db_session, make_agent):
        sponsor = await make_agent(status=AgentStatus.INACTIVE)
        with pytest.raises(ValidationError):
            await register_referrer(
                db_session, sponsor, name="Hana", phone="60177777778", password="secret123"
            )
