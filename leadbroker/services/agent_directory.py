"""
Agent directory: lookups and the agent write path.

Every lookup takes an explicit include_deleted flag. Referral code
generation and password hashing happen here, before the row is written,
not in ORM hooks.
"""

import logging
import secrets
from typing import Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from leadbroker.config import settings
from leadbroker.exceptions import (
    ConflictError,
    DirectoryUnavailable,
    NotFoundError,
    ValidationError,
)
from leadbroker.models import Agent, AgentRole, AgentStatus
from leadbroker.utils.password import hash_password

logger = logging.getLogger(__name__)

# Fields an admin may edit through update_agent
EDITABLE_FIELDS = (
    "name",
    "phone",
    "email",
    "location",
    "bank_name",
    "account_number",
    "password",
)


async def get_agent(
    db: AsyncSession,
    agent_id: int,
    *,
    include_deleted: bool,
) -> Optional[Agent]:
    """Look up an agent by id."""
    query = select(Agent).where(Agent.id == agent_id)
    if not include_deleted:
        query = query.where(Agent.deleted_at.is_(None))

    try:
        result = await db.execute(query)
    except DBAPIError as e:
        logger.error(f"Agent lookup by id {agent_id} failed: {e}")
        raise DirectoryUnavailable("Agent directory is unavailable") from e
    return result.scalar_one_or_none()


async def get_agent_by_referral_code(
    db: AsyncSession,
    referral_code: str,
    *,
    include_deleted: bool,
) -> Optional[Agent]:
    """Look up an agent by referral code."""
    query = select(Agent).where(Agent.referral_code == referral_code)
    if not include_deleted:
        query = query.where(Agent.deleted_at.is_(None))

    try:
        result = await db.execute(query)
    except DBAPIError as e:
        logger.error(f"Agent lookup by referral code failed: {e}")
        raise DirectoryUnavailable("Agent directory is unavailable") from e
    return result.scalar_one_or_none()


async def get_agent_by_phone(
    db: AsyncSession,
    phone: str,
    *,
    include_deleted: bool,
) -> Optional[Agent]:
    """Look up an agent by phone number."""
    query = select(Agent).where(Agent.phone == phone)
    if not include_deleted:
        query = query.where(Agent.deleted_at.is_(None))

    try:
        result = await db.execute(query)
    except DBAPIError as e:
        logger.error(f"Agent lookup by phone failed: {e}")
        raise DirectoryUnavailable("Agent directory is unavailable") from e
    return result.scalar_one_or_none()


async def require_agent(db: AsyncSession, agent_id: int) -> Agent:
    """Get a non-deleted agent or raise NotFoundError."""
    agent = await get_agent(db, agent_id, include_deleted=False)
    if not agent:
        raise NotFoundError(f"Agent {agent_id} not found")
    return agent


async def list_agents(
    db: AsyncSession,
    *,
    include_deleted: bool,
    role: Optional[AgentRole] = None,
    status: Optional[AgentStatus] = None,
    parent_referrer_id: Optional[int] = None,
) -> Sequence[Agent]:
    """List directory entries with optional filters."""
    query = select(Agent)
    if not include_deleted:
        query = query.where(Agent.deleted_at.is_(None))
    if role is not None:
        query = query.where(Agent.role == role)
    if status is not None:
        query = query.where(Agent.status == status)
    if parent_referrer_id is not None:
        query = query.where(Agent.parent_referrer_id == parent_referrer_id)

    result = await db.execute(query.order_by(Agent.name))
    return result.scalars().all()


# ── Write path ───────────────────────────────────────────


async def generate_referral_code(db: AsyncSession) -> str:
    """
    Generate a referral code not used by any agent, deleted ones included.

    Raises:
        ConflictError: no free code after referral_code_max_attempts tries
    """
    for attempt in range(1, settings.referral_code_max_attempts + 1):
        candidate = f"{settings.referral_code_prefix}{secrets.token_hex(4).upper()}"
        existing = await get_agent_by_referral_code(db, candidate, include_deleted=True)
        if not existing:
            return candidate
        logger.warning(f"Referral code collision on attempt {attempt}: {candidate}")

    raise ConflictError(
        f"Could not generate a unique referral code after "
        f"{settings.referral_code_max_attempts} attempts"
    )


async def _check_contact_unique(
    db: AsyncSession,
    phone: Optional[str],
    email: Optional[str],
    exclude_id: Optional[int] = None,
) -> None:
    """Reject phone/email already used by another agent, deleted ones included."""
    clauses = []
    if phone:
        clauses.append(Agent.phone == phone)
    if email:
        clauses.append(Agent.email == email)
    if not clauses:
        return

    query = select(Agent).where(or_(*clauses))
    if exclude_id is not None:
        query = query.where(Agent.id != exclude_id)
    result = await db.execute(query)

    for existing in result.scalars().all():
        field = "Phone number" if phone and existing.phone == phone else "Email"
        if existing.is_deleted:
            raise ConflictError(
                f"{field} already in use by a deleted agent. "
                "Restore the agent or use a different value."
            )
        raise ConflictError(f"{field} already in use")


async def create_agent(
    db: AsyncSession,
    *,
    name: str,
    phone: str,
    password: str,
    role: AgentRole = AgentRole.AGENT,
    status: AgentStatus = AgentStatus.PENDING,
    email: Optional[str] = None,
    location: Optional[str] = None,
    referral_code: Optional[str] = None,
    parent_referrer_id: Optional[int] = None,
    bank_name: Optional[str] = None,
    account_number: Optional[str] = None,
) -> Agent:
    """
    Create a directory entry.

    Self-registration passes status=PENDING, admin creation passes ACTIVE.
    A referral code is generated when none is supplied; a supplied one
    must be unused, deleted agents included.
    """
    if not password:
        raise ValidationError("Password is required")

    await _check_contact_unique(db, phone, email)

    if referral_code:
        clash = await get_agent_by_referral_code(db, referral_code, include_deleted=True)
        if clash:
            raise ConflictError("Referral code must be unique")
    else:
        referral_code = await generate_referral_code(db)

    if parent_referrer_id is not None:
        sponsor = await get_agent(db, parent_referrer_id, include_deleted=False)
        if not sponsor:
            raise NotFoundError(f"Sponsoring agent {parent_referrer_id} not found")

    agent = Agent(
        name=name,
        phone=phone,
        email=email,
        location=location or "Unknown",
        password_hash=hash_password(password),
        role=role,
        status=status,
        referral_code=referral_code,
        parent_referrer_id=parent_referrer_id,
        bank_name=bank_name,
        account_number=account_number,
    )
    db.add(agent)
    await db.flush()

    logger.info(
        f"Agent created: id={agent.id} role={role.value} status={status.value} "
        f"referral_code={referral_code}"
    )
    return agent


async def register_referrer(
    db: AsyncSession,
    sponsor: Agent,
    *,
    name: str,
    phone: str,
    password: str,
    email: Optional[str] = None,
    location: Optional[str] = None,
) -> Agent:
    """Register a referrer under a sponsoring agent. Starts Pending."""
    if sponsor.role == AgentRole.REFERRER:
        raise ValidationError("Referrers cannot sponsor other referrers")
    if not sponsor.is_active:
        raise ValidationError("Sponsoring agent is not active")

    return await create_agent(
        db,
        name=name,
        phone=phone,
        password=password,
        email=email,
        location=location,
        role=AgentRole.REFERRER,
        status=AgentStatus.PENDING,
        parent_referrer_id=sponsor.id,
    )


async def update_agent(db: AsyncSession, agent: Agent, changes: dict) -> Agent:
    """
    Apply descriptive field changes.

    Raises:
        ConflictError: referral_code change, or phone/email clash
        ValidationError: unknown field
    """
    if "referral_code" in changes and changes["referral_code"] != agent.referral_code:
        raise ConflictError("Referral code cannot be updated")

    unknown = set(changes) - set(EDITABLE_FIELDS) - {"referral_code"}
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

    new_phone = changes.get("phone")
    new_email = changes.get("email")
    await _check_contact_unique(
        db,
        new_phone if new_phone and new_phone != agent.phone else None,
        new_email if new_email and new_email != agent.email else None,
        exclude_id=agent.id,
    )

    for field in EDITABLE_FIELDS:
        if field not in changes or changes[field] is None:
            continue
        if field == "password":
            agent.password_hash = hash_password(changes["password"])
        else:
            setattr(agent, field, changes[field])

    logger.info(f"Agent {agent.id} updated: {sorted(k for k in changes if k != 'password')}")
    return agent


def approve_agent(agent: Agent, approved: bool) -> Agent:
    """Resolve a pending registration. Allowed exactly once."""
    if agent.status != AgentStatus.PENDING:
        raise ConflictError(
            f"Only pending agents can be approved (current status: {agent.status.value})"
        )

    agent.status = AgentStatus.ACTIVE if approved else AgentStatus.REJECTED
    logger.info(f"Agent {agent.id} registration {'approved' if approved else 'rejected'}")
    return agent


def set_agent_active(agent: Agent, active: bool) -> Agent:
    """Toggle between ACTIVE and INACTIVE."""
    if agent.status not in (AgentStatus.ACTIVE, AgentStatus.INACTIVE):
        raise ConflictError(
            f"Only active or inactive agents can be toggled (current status: {agent.status.value})"
        )

    agent.status = AgentStatus.ACTIVE if active else AgentStatus.INACTIVE
    logger.info(f"Agent {agent.id} is now {agent.status.value}")
    return agent


def soft_delete_agent(agent: Agent) -> Agent:
    """Logically remove an agent. Their phone and referral code stay reserved."""
    if agent.referral_code == settings.default_referral_code:
        raise ConflictError("The default referral agent cannot be deleted")

    agent.soft_delete()
    logger.info(f"Agent {agent.id} soft-deleted")
    return agent
