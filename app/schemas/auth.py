"""Authentication schemas"""
from pydantic import BaseModel, Field


class TokenRequest(BaseModel):
    """Login with either username or email"""
    login: str = Field(..., description="Username or email address")
    password: str


class TokenEnvelope(BaseModel):
    """JWT token response"""
    ok: bool = True
    message: str
    access_token: str
    token_type: str = "bearer"
