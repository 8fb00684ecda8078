"""
JWT token management.

Tokens travel in the Authorization header as "Bearer <token>".
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from leadbroker.config import settings

# JWT configuration
ALGORITHM = "HS256"
TOKEN_TYPE = "access"


def create_access_token(
    agent_id: int,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        agent_id: Agent's database ID
        role: Agent's role (Admin/Agent/Referrer)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(hours=settings.jwt_expire_hours)

    payload = {
        "sub": str(agent_id),
        "role": role,
        "exp": expire,
        "type": TOKEN_TYPE,
        "iat": datetime.now(timezone.utc),
    }

    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """
    Verify and decode a JWT token.

    Returns:
        Dict with 'agent_id' and 'role', or None if the token is
        invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
        )

        if payload.get("type") != TOKEN_TYPE:
            return None

        agent_id = payload.get("sub")
        role = payload.get("role")

        if not agent_id or not role:
            return None

        return {
            "agent_id": int(agent_id),
            "role": role,
        }

    except (JWTError, ValueError):
        return None


def get_token_from_header(request) -> Optional[str]:
    """Extract the bearer token from the Authorization header."""
    header = request.headers.get("Authorization")
    if not header:
        return None

    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
