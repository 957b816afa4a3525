import re
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import Optional

from src.infra.config.settings import settings

ADDRESS_PATTERN = re.compile(r'^0x[a-fA-F0-9]{40}$')
LOGIN_SESSION_TOKEN_MAX_LENGTH = 255


class ChallengeStatus(str, Enum):
    ISSUED = "issued"
    SUCCESS = "success"
    FAIL = "fail"
    CONSUMED = "consumed"


class ChallengeRecord(BaseModel):
    """Login challenge bound to a client-supplied login session token"""
    login_session_token: str = Field(..., min_length=1, max_length=LOGIN_SESSION_TOKEN_MAX_LENGTH, description="Opaque token supplied by the calling application")
    claimed_address: str = Field(..., description="Address the client claims to control, lower-cased")
    nonce: str = Field(..., description="Server generated challenge the wallet signs")
    expires_at: datetime
    status: ChallengeStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('claimed_address')
    @classmethod
    def validate_claimed_address(cls, v: str) -> str:
        if not ADDRESS_PATTERN.match(v):
            raise ValueError('Invalid address')
        return v.lower()

    @field_validator('nonce')
    @classmethod
    def validate_nonce(cls, v: str) -> str:
        if not v.startswith(settings.LOGIN_NONCE_PREFIX):
            raise ValueError(f'Nonce must start with {settings.LOGIN_NONCE_PREFIX!r}')
        return v

    @field_validator('expires_at', 'created_at', 'updated_at')
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Some drivers (SQLite) hand back naive datetimes
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def is_expired(self) -> bool:
        """Check if the challenge has expired"""
        return datetime.now(timezone.utc) > self.expires_at

    class Config:
        json_schema_extra = {
            "example": {
                "login_session_token": "428489af-3ca1-4861-b1c7-5f634f6466e2",
                "claimed_address": "0xff893698fac953dbbcdc3276e8ad13ed3267fb06",
                "nonce": "signin-0652c409-17ef-4ad6-b580-3faaefcc204d",
                "expires_at": "2024-02-06T10:02:00Z",
                "status": "issued"
            }
        }
