"""
Display id sequence for leads.

unique_id is "N.0.0.0". N comes from a counter row that is incremented
with one atomic UPDATE ... RETURNING inside the lead's transaction, so
concurrent creations never compute the same N.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leadbroker.models import LEAD_SEQUENCE_NAME, Lead, LeadSequence

logger = logging.getLogger(__name__)


def format_unique_id(number: int) -> str:
    return f"{number}.0.0.0"


def parse_unique_id(unique_id: str) -> int:
    """Leading number of an "N.0.0.0" display id, 0 if unparseable."""
    try:
        return int(unique_id.split(".", 1)[0])
    except (AttributeError, ValueError):
        return 0


async def ensure_lead_sequence(db: AsyncSession) -> LeadSequence:
    """
    Create the counter row if missing.

    Seeds it from the highest display id already stored (deleted leads
    included) so existing data keeps its numbering. Run at startup.
    """
    sequence = await db.get(LeadSequence, LEAD_SEQUENCE_NAME)
    if sequence:
        return sequence

    result = await db.execute(select(Lead.unique_id))
    highest = max((parse_unique_id(uid) for uid in result.scalars().all()), default=0)

    sequence = LeadSequence(name=LEAD_SEQUENCE_NAME, last_value=highest)
    db.add(sequence)
    await db.flush()
    logger.info(f"Lead sequence initialised at {highest}")
    return sequence


async def next_lead_number(db: AsyncSession) -> int:
    """Atomically increment the counter and return the new value."""
    stmt = (
        update(LeadSequence)
        .where(LeadSequence.name == LEAD_SEQUENCE_NAME)
        .values(last_value=LeadSequence.last_value + 1)
        .returning(LeadSequence.last_value)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    value = result.scalar_one_or_none()

    if value is None:
        # Normally seeded at startup; a concurrent first insert surfaces
        # as an IntegrityError and the request can be retried.
        await ensure_lead_sequence(db)
        result = await db.execute(stmt)
        value = result.scalar_one()

    return value
