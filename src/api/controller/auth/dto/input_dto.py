"""
Input DTOs for authentication API endpoints.
"""

from pydantic import BaseModel, Field, field_validator

from src.core.service.auth.models.challenge import LOGIN_SESSION_TOKEN_MAX_LENGTH


class LoginSessionRequestDto(BaseModel):
    """Base for requests keyed by a login session token."""

    login_session_token: str = Field(
        ...,
        alias="loginSessionToken",
        description="Opaque token chosen by the calling application"
    )

    class Config:
        populate_by_name = True

    @field_validator('login_session_token')
    @classmethod
    def validate_login_session_token(cls, v: str) -> str:
        # Stored stripped, so every lookup must strip the same way
        v = v.strip()
        if not v:
            raise ValueError('Login session token cannot be empty')
        if len(v) > LOGIN_SESSION_TOKEN_MAX_LENGTH:
            raise ValueError(f'Login session token must be at most {LOGIN_SESSION_TOKEN_MAX_LENGTH} characters')
        return v


class StartSessionRequestDto(LoginSessionRequestDto):
    """DTO for issuing a login challenge."""

    claimed_address: str = Field(
        ...,
        alias="claimedAddress",
        description="Address the wallet claims to control"
    )

    @field_validator('claimed_address')
    @classmethod
    def strip_address(cls, v: str) -> str:
        return v.strip()


class AuthenticateRequestDto(LoginSessionRequestDto):
    """DTO for submitting a signed challenge."""

    signature: str = Field(
        ...,
        description="0x-prefixed 65 byte r||s||v signature over the challenge"
    )

    @field_validator('signature')
    @classmethod
    def strip_signature(cls, v: str) -> str:
        return v.strip()


class LoginRequestDto(LoginSessionRequestDto):
    """DTO for redeeming an authenticated challenge."""


class RefreshTokenRequestDto(BaseModel):
    """DTO for token refresh and logout requests."""

    refresh_token: str = Field(
        ...,
        min_length=1,
        alias="refreshToken",
        description="Valid refresh token"
    )

    class Config:
        populate_by_name = True

    @field_validator('refresh_token')
    @classmethod
    def validate_refresh_token(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Refresh token cannot be empty')
        return v.strip()
