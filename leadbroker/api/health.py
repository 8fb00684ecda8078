"""
Health check endpoints.

Readiness also confirms the lead counter row exists; intake cannot
number leads without it.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadbroker.db import get_db
from leadbroker.models import LEAD_SEQUENCE_NAME, LeadSequence

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Process is up."""
    return {"status": "healthy", "service": "leadbroker"}


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """
    Ready to take leads: the database answers and the lead counter
    has been seeded.
    """
    try:
        last_value = await db.scalar(
            select(LeadSequence.last_value).where(LeadSequence.name == LEAD_SEQUENCE_NAME)
        )
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return {
            "status": "not_ready",
            "database": f"error: {e}",
        }

    if last_value is None:
        logger.warning("Readiness check: lead sequence is not seeded")
        return {
            "status": "not_ready",
            "database": "connected",
            "lead_sequence": "missing",
        }

    return {
        "status": "ready",
        "database": "connected",
        "lead_sequence": last_value,
    }


@router.get("/live")
async def liveness_check():
    return {"status": "alive"}
