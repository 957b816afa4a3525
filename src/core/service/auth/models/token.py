from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenPayload(BaseModel):
    """JWT token payload structure"""
    sub: str = Field(..., description="User id")
    address: str = Field(..., description="User's wallet address")
    exp: datetime = Field(..., description="Token expiration timestamp")
    iat: datetime = Field(..., description="Token issued at timestamp")
    type: TokenType = Field(..., description="Token type (access or refresh)")
    jti: str = Field(..., description="Unique token identifier for blacklisting")


class Credential(BaseModel):
    """A bearer token together with its expiry"""
    token: str
    expires: datetime


class AuthTokens(BaseModel):
    access: Credential
    refresh: Credential


class TokenBlacklist(BaseModel):
    """Model for blacklisted tokens"""
    jti: str
    exp: datetime
    blacklisted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    reason: Optional[str] = None
