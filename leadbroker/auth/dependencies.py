"""
FastAPI dependencies for authentication.
"""

import secrets

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadbroker.auth.identity import Identity
from leadbroker.auth.jwt import get_token_from_header, verify_token
from leadbroker.config import settings
from leadbroker.db import get_db
from leadbroker.models import Agent, AgentRole
from leadbroker.services.agent_directory import get_agent


async def get_current_agent(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Agent:
    """
    Get the current authenticated agent.

    Raises 401 if not authenticated, 403 if the account is not active.
    """
    token = get_token_from_header(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    agent = await get_agent(db, payload["agent_id"], include_deleted=False)

    if not agent:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Agent not found",
        )

    if not agent.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active",
        )

    return agent


async def get_current_identity(
    current_agent: Agent = Depends(get_current_agent),
) -> Identity:
    """
    Verified requester identity.

    The role is read from the directory, not from the token, so a role
    change takes effect on the next request.
    """
    return Identity(agent_id=current_agent.id, role=current_agent.role)


async def require_admin(
    identity: Identity = Depends(get_current_identity),
) -> Identity:
    """
    Require the current agent to be an admin.

    Raises 403 otherwise.
    """
    if identity.role != AgentRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return identity


async def require_agent_or_admin(
    identity: Identity = Depends(get_current_identity),
) -> Identity:
    """Require an Agent or Admin; referrers are refused with 403."""
    if identity.role not in (AgentRole.ADMIN, AgentRole.AGENT):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
    return identity


async def require_api_key(request: Request) -> None:
    """
    Authenticate the lead intake integration by its shared X-API-Key.

    Intake is closed when no key is configured.
    """
    provided = request.headers.get("X-API-Key") or ""
    expected = settings.leads_api_key

    if not expected or not secrets.compare_digest(provided, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )
