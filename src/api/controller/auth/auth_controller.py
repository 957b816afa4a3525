"""
Wallet authentication controller.

Domain errors raised by the service are ServiceError subclasses and are
rendered by the global error handler.
"""

from fastapi import APIRouter, Depends, Response, status

from src.api.controller.auth.dto.input_dto import (
    StartSessionRequestDto, AuthenticateRequestDto, LoginRequestDto, RefreshTokenRequestDto
)
from src.api.controller.auth.dto.output_dto import (
    StartSessionResponseDto, AuthenticateResponseDto, LoginResponseDto, TokensResponseDto
)
from src.core.dependencies import get_auth_service
from src.core.service.auth.auth_service import AuthService
from src.core.logger.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/start-session", response_model=StartSessionResponseDto)
async def start_session(
    request: StartSessionRequestDto,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Issue a challenge nonce for a login session token.

    The wallet signs the nonce and the signature is submitted to /auth/authenticate
    within the challenge lifetime.
    """
    nonce = await auth_service.start_session(request.login_session_token, request.claimed_address)
    return StartSessionResponseDto(nonce=nonce)


@router.post("/authenticate", response_model=AuthenticateResponseDto)
async def authenticate(
    request: AuthenticateRequestDto,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Submit the signature over the issued nonce.

    Returns authenticated=false when the signature belongs to another address;
    the challenge cannot be retried after that.
    """
    authenticated = await auth_service.authenticate(request.login_session_token, request.signature)
    return AuthenticateResponseDto(authenticated=authenticated)


@router.post("/login", response_model=LoginResponseDto)
async def login(
    request: LoginRequestDto,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Exchange an authenticated login session token for the user and a token pair"""
    user, tokens = await auth_service.login(request.login_session_token)
    return LoginResponseDto.from_login(user, tokens)


@router.post("/refresh-tokens", response_model=TokensResponseDto)
async def refresh_tokens(
    request: RefreshTokenRequestDto,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Rotate a refresh token; the presented token stops working"""
    tokens = await auth_service.refresh_auth(request.refresh_token)
    return TokensResponseDto.from_tokens(tokens)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    request: RefreshTokenRequestDto,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Revoke a refresh token"""
    await auth_service.logout(request.refresh_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
