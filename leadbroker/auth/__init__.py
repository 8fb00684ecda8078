"""Authentication module."""

from leadbroker.auth.dependencies import (
    get_current_agent,
    get_current_identity,
    require_admin,
    require_agent_or_admin,
    require_api_key,
)
from leadbroker.auth.identity import Identity
from leadbroker.auth.jwt import create_access_token, verify_token

__all__ = [
    "Identity",
    "create_access_token",
    "verify_token",
    "get_current_agent",
    "get_current_identity",
    "require_admin",
    "require_agent_or_admin",
    "require_api_key",
]
