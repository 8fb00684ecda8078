"""
Pytest configuration and fixtures.
"""

import os

# Configure settings before any leadbroker module is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LEADS_API_KEY", "test-api-key")

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from leadbroker.config import settings
from leadbroker.models import Agent, AgentRole, AgentStatus, Base, Lead, LeadStatus
from leadbroker.services.lead_sequence import ensure_lead_sequence


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session with the lead sequence seeded."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        await ensure_lead_sequence(session)
        await session.commit()
        yield session


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """File-backed SQLite so each session gets its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'leads.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        await ensure_lead_sequence(session)
        await session.commit()

    yield engine

    await engine.dispose()

@pytest_asyncio.fixture
async def make_agent(db_session):
    """
    Factory for directory entries.

    Writes rows directly (no bcrypt) so tests stay fast.
    """
    counter = {"n": 0}

    async def _make(
        role: AgentRole = AgentRole.AGENT,
        status: AgentStatus = AgentStatus.ACTIVE,
        referral_code=None,
        parent_referrer_id=None,
        name=None,
    ) -> Agent:
        counter["n"] += 1
        n = counter["n"]
        agent = Agent(
            name=name or f"{role.value} {n}",
            phone=f"6012000{n:04d}",
            location="Kuala Lumpur",
            password_hash="not-a-real-hash",
            role=role,
            status=status,
            referral_code=referral_code or f"REF-TEST{n:04d}",
            parent_referrer_id=parent_referrer_id,
        )
        db_session.add(agent)
        await db_session.flush()
        return agent

    return _make


@pytest_asyncio.fixture
async def house_agent(make_agent):
    """Super admin owning the default referral code."""
    return await make_agent(
        role=AgentRole.ADMIN,
        referral_code=settings.default_referral_code,
        name="Super Admin",
    )


@pytest_asyncio.fixture
async def make_lead(db_session):
    """Factory for leads in a given status, bypassing intake."""
    counter = {"n": 0}

    async def _make(
        assigned_agent_id=None,
        referrer_id=None,
        status: LeadStatus = LeadStatus.NEW,
    ) -> Lead:
        counter["n"] += 1
        n = counter["n"]
        lead = Lead(
            unique_id=f"{1000 + n}.0.0.0",
            name=f"Customer {n}",
            phone=f"6019000{n:04d}",
            status=status,
            assigned_agent_id=assigned_agent_id,
            referrer_id=referrer_id,
        )
        db_session.add(lead)
        await db_session.flush()
        return lead

    return _make
