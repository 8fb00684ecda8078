"""
Audit trail for lead, commission and agent changes.
"""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from leadbroker.models.audit import AuditAction, AuditLog


async def log_action(
    db: AsyncSession,
    agent_id: Optional[int],
    action: AuditAction,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    action_metadata: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    """
    Record an action in the audit trail.

    The row is added to the caller's session and committed with the
    change it describes.

    Args:
        db: Database session
        agent_id: ID of the acting agent, None for system actions
        action: What happened
        target_type: "lead", "commission" or "agent"
        target_id: ID of the affected entity
        action_metadata: Additional context about the action
        ip_address: Client IP address

    Returns:
        Created AuditLog entry
    """
    log_entry = AuditLog(
        agent_id=agent_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        action_metadata=action_metadata,
        ip_address=ip_address,
    )
    db.add(log_entry)
    return log_entry


def get_client_ip(request) -> Optional[str]:
    """
    Address of the submitting client, recorded on audit rows.

    Prefers the first X-Forwarded-For entry when behind a proxy.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    if hasattr(request, "client") and request.client:
        return request.client.host

    return None
