"""
Verified requester identity.
"""

from dataclasses import dataclass

from leadbroker.models.agent import AgentRole


@dataclass(frozen=True)
class Identity:
    """Who is making the request, as vouched for by the token verifier."""

    agent_id: int
    role: AgentRole

    @property
    def is_admin(self) -> bool:
        return self.role == AgentRole.ADMIN
