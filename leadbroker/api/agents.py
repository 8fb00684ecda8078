"""Agent directory API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadbroker.auth.dependencies import get_current_agent, require_admin, require_agent_or_admin
from leadbroker.auth.identity import Identity
from leadbroker.db import get_db
from leadbroker.models import Agent, AgentRole, AgentStatus, AuditAction
from leadbroker.schemas.agent import (
    AgentApproveRequest,
    AgentCreate,
    AgentRegister,
    AgentResponse,
    AgentStatusRequest,
    AgentUpdate,
    ReferrerRegister,
)
from leadbroker.services.agent_directory import (
    approve_agent,
    create_agent,
    list_agents,
    register_referrer,
    require_agent,
    set_agent_active,
    soft_delete_agent,
    update_agent,
)
from leadbroker.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/agents", tags=["Agents"])


@router.post("/register", response_model=AgentResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: Request,
    data: AgentRegister,
    db: AsyncSession = Depends(get_db),
):
    """Self-registration. The account waits for admin approval."""
    agent = await create_agent(
        db,
        name=data.name,
        phone=data.phone,
        password=data.password,
        email=data.email,
        location=data.location,
        bank_name=data.bank_name,
        account_number=data.account_number,
        role=AgentRole.AGENT,
        status=AgentStatus.PENDING,
    )

    await log_action(
        db=db,
        agent_id=None,
        action=AuditAction.CREATE_AGENT,
        target_type="agent",
        target_id=agent.id,
        action_metadata={"self_registered": True},
        ip_address=get_client_ip(request),
    )

    return agent


@router.post("/referrers", response_model=AgentResponse, status_code=status.HTTP_201_CREATED)
async def register_referrer_for_agent(
    request: Request,
    data: ReferrerRegister,
    db: AsyncSession = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent),
    _: Identity = Depends(require_agent_or_admin),
):
    """Register a referrer sponsored by the current agent."""
    referrer = await register_referrer(
        db,
        current_agent,
        name=data.name,
        phone=data.phone,
        password=data.password,
        email=data.email,
        location=data.location,
    )

    await log_action(
        db=db,
        agent_id=current_agent.id,
        action=AuditAction.CREATE_AGENT,
        target_type="agent",
        target_id=referrer.id,
        action_metadata={"role": AgentRole.REFERRER.value, "sponsor_id": current_agent.id},
        ip_address=get_client_ip(request),
    )

    return referrer


@router.get("", response_model=List[AgentResponse])
async def get_agents(
    db: AsyncSession = Depends(get_db),
    _: Identity = Depends(require_admin),
    role: Optional[AgentRole] = Query(None),
    status_filter: Optional[AgentStatus] = Query(None, alias="status"),
    parent_referrer_id: Optional[int] = Query(None),
    include_deleted: bool = Query(False),
):
    """List the agent directory."""
    return await list_agents(
        db,
        include_deleted=include_deleted,
        role=role,
        status=status_filter,
        parent_referrer_id=parent_referrer_id,
    )


@router.post("", response_model=AgentResponse, status_code=status.HTTP_201_CREATED)
async def post_agent(
    request: Request,
    data: AgentCreate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    """Create an agent. Admin-created accounts are active immediately."""
    agent = await create_agent(
        db,
        name=data.name,
        phone=data.phone,
        password=data.password,
        email=data.email,
        location=data.location,
        bank_name=data.bank_name,
        account_number=data.account_number,
        role=data.role,
        status=AgentStatus.ACTIVE,
        referral_code=data.referral_code,
        parent_referrer_id=data.parent_referrer_id,
    )

    await log_action(
        db=db,
        agent_id=identity.agent_id,
        action=AuditAction.CREATE_AGENT,
        target_type="agent",
        target_id=agent.id,
        action_metadata={"role": agent.role.value},
        ip_address=get_client_ip(request),
    )

    return agent


@router.get("/me", response_model=AgentResponse)
async def get_me(current_agent: Agent = Depends(get_current_agent)):
    """Current agent's profile."""
    return current_agent


@router.get("/{agent_id}", response_model=AgentResponse)
async def get_agent_detail(
    agent_id: int,
    db: AsyncSession = Depends(get_db),
    _: Identity = Depends(require_admin),
):
    """Get a single agent."""
    return await require_agent(db, agent_id)


@router.patch("/{agent_id}", response_model=AgentResponse)
async def patch_agent(
    agent_id: int,
    request: Request,
    data: AgentUpdate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    """Update descriptive fields. Changing the referral code is refused."""
    agent = await require_agent(db, agent_id)
    changes = data.model_dump(exclude_unset=True)
    await update_agent(db, agent, changes)

    await log_action(
        db=db,
        agent_id=identity.agent_id,
        action=AuditAction.UPDATE_AGENT,
        target_type="agent",
        target_id=agent.id,
        action_metadata={"fields": sorted(k for k in changes if k != "password")},
        ip_address=get_client_ip(request),
    )

    return agent


@router.post("/{agent_id}/approve", response_model=AgentResponse)
async def approve(
    agent_id: int,
    request: Request,
    data: AgentApproveRequest,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    """Approve or reject a pending registration."""
    agent = await require_agent(db, agent_id)
    approve_agent(agent, data.approved)

    await log_action(
        db=db,
        agent_id=identity.agent_id,
        action=AuditAction.APPROVE_AGENT,
        target_type="agent",
        target_id=agent.id,
        action_metadata={"approved": data.approved},
        ip_address=get_client_ip(request),
    )

    return agent


@router.post("/{agent_id}/status", response_model=AgentResponse)
async def change_status(
    agent_id: int,
    request: Request,
    data: AgentStatusRequest,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    """Activate or deactivate an agent."""
    agent = await require_agent(db, agent_id)
    set_agent_active(agent, data.active)

    await log_action(
        db=db,
        agent_id=identity.agent_id,
        action=AuditAction.CHANGE_AGENT_STATUS,
        target_type="agent",
        target_id=agent.id,
        action_metadata={"status": agent.status.value},
        ip_address=get_client_ip(request),
    )

    return agent


@router.delete("/{agent_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_agent(
    agent_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    """Soft delete an agent. Their phone and referral code stay reserved."""
    agent = await require_agent(db, agent_id)
    soft_delete_agent(agent)

    await log_action(
        db=db,
        agent_id=identity.agent_id,
        action=AuditAction.DELETE_AGENT,
        target_type="agent",
        target_id=agent.id,
        ip_address=get_client_ip(request),
    )
