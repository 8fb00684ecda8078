"""Authentication schemas."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Login request body."""

    phone: str = Field(..., min_length=1, max_length=20)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Login response with the bearer token."""

    access_token: str
    token_type: str = Field(default="bearer")
    agent_id: int
    role: str
