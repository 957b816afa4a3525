"""
Output DTOs for authentication API endpoints.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from src.core.service.auth.models.token import AuthTokens, Credential
from src.core.service.auth.models.user import User


class StartSessionResponseDto(BaseModel):
    """DTO for challenge creation response."""

    nonce: str = Field(..., description="Challenge the wallet has to sign")


class AuthenticateResponseDto(BaseModel):
    """DTO for signature submission response."""

    authenticated: bool = Field(..., description="Whether the signature matched the claimed address")


class CredentialDto(BaseModel):
    """A signed token and the moment it stops being accepted."""

    token: str
    expires: datetime

    @classmethod
    def from_credential(cls, credential: Credential) -> "CredentialDto":
        return cls(token=credential.token, expires=credential.expires)


class UserViewDto(BaseModel):
    """Public view of a user."""

    id: UUID
    name: str
    address: str
    role: str
    is_address_verified: bool = Field(..., alias="isAddressVerified")

    class Config:
        populate_by_name = True

    @classmethod
    def from_user(cls, user: User) -> "UserViewDto":
        return cls(
            id=user.id,
            name=user.name,
            address=user.address,
            role=user.role.value,
            is_address_verified=user.is_address_verified
        )


class TokensResponseDto(BaseModel):
    """DTO for a freshly issued token pair."""

    access_credential: CredentialDto = Field(..., alias="accessCredential")
    refresh_credential: CredentialDto = Field(..., alias="refreshCredential")

    class Config:
        populate_by_name = True

    @classmethod
    def from_tokens(cls, tokens: AuthTokens) -> "TokensResponseDto":
        return cls(
            access_credential=CredentialDto.from_credential(tokens.access),
            refresh_credential=CredentialDto.from_credential(tokens.refresh)
        )


class LoginResponseDto(TokensResponseDto):
    """DTO for successful login response."""

    user: UserViewDto

    @classmethod
    def from_login(cls, user: User, tokens: AuthTokens) -> "LoginResponseDto":
        return cls(
            user=UserViewDto.from_user(user),
            access_credential=CredentialDto.from_credential(tokens.access),
            refresh_credential=CredentialDto.from_credential(tokens.refresh)
        )
