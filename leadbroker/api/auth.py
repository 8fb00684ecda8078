"""
Authentication API endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadbroker.auth.jwt import create_access_token
from leadbroker.db import get_db
from leadbroker.models import AuditAction
from leadbroker.schemas.auth import LoginRequest, LoginResponse
from leadbroker.services.agent_directory import get_agent_by_phone
from leadbroker.utils.audit import get_client_ip, log_action
from leadbroker.utils.password import verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate an agent by phone and password.

    Only active, non-deleted accounts may log in.
    """
    agent = await get_agent_by_phone(db, credentials.phone, include_deleted=False)

    # Verify credentials
    if not agent or not verify_password(credentials.password, agent.password_hash):
        logger.info(f"Failed login for phone {credentials.phone}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid phone number or password",
        )

    # Check if active
    if not agent.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Account is {agent.status.value.lower()}",
        )

    token = create_access_token(agent.id, agent.role.value)

    await log_action(
        db=db,
        agent_id=agent.id,
        action=AuditAction.LOGIN,
        ip_address=get_client_ip(request),
    )

    return LoginResponse(
        access_token=token,
        agent_id=agent.id,
        role=agent.role.value,
    )
