from typing import Optional, Tuple

from fastapi import status

from src.core.exceptions.base import (
    ConflictError, NotFoundError, NotFoundOrExpiredError, UnauthorizedError, ValidationError
)
from src.core.service.auth.jwt_service import JWTService
from src.core.service.auth.models.challenge import ADDRESS_PATTERN, LOGIN_SESSION_TOKEN_MAX_LENGTH
from src.core.service.auth.models.token import AuthTokens, TokenType
from src.core.service.auth.models.user import User, UserCreate, UserRole
from src.core.service.auth.signature_verification import SignatureVerificationService
from src.infra.config.settings import settings
from src.infra.repository.challenge_store import ChallengeStore
from src.infra.repository.user_repository import UserRepository
from src.core.logger.logger import get_logger

logger = get_logger(__name__)


class AuthService:
    """
    Wallet login state machine.

    ISSUED --authenticate--> SUCCESS | FAIL, SUCCESS --login--> CONSUMED.
    Each transition is a conditional update in the challenge store, so a
    record can be authenticated against once and redeemed once.
    """

    def __init__(
        self,
        challenge_store: ChallengeStore,
        user_repository: UserRepository,
        jwt_service: JWTService,
        signature_service: Optional[SignatureVerificationService] = None
    ):
        self.store = challenge_store
        self.users = user_repository
        self.jwt_service = jwt_service
        self.signature_service = signature_service or SignatureVerificationService()

    async def start_session(self, login_session_token: str, claimed_address: str) -> str:
        """Issue a challenge for the address and return its nonce"""
        login_session_token = (login_session_token or "").strip()
        if not login_session_token:
            raise ValidationError('"loginSessionToken" is required', field="loginSessionToken")
        if len(login_session_token) > LOGIN_SESSION_TOKEN_MAX_LENGTH:
            raise ValidationError(
                f'"loginSessionToken" must be at most {LOGIN_SESSION_TOKEN_MAX_LENGTH} characters',
                field="loginSessionToken"
            )
        if not claimed_address or not ADDRESS_PATTERN.match(claimed_address.strip()):
            raise ValidationError('"claimedAddress" must be a valid address', field="claimedAddress")

        return await self.store.create(login_session_token, claimed_address.strip().lower())

    async def authenticate(self, login_session_token: str, signature: str) -> bool:
        """
        Check the signature over the issued challenge and record the outcome.

        A malformed signature raises VerificationError and leaves the challenge
        ISSUED; a well-formed signature from another key records FAIL.
        """
        record = await self.store.get_issued(login_session_token)
        if record is None:
            raise NotFoundOrExpiredError(status_code=status.HTTP_400_BAD_REQUEST)

        authenticated = self.signature_service.verify(record.nonce, record.claimed_address, signature)

        if not await self.store.mark_result(login_session_token, authenticated):
            raise NotFoundOrExpiredError(status_code=status.HTTP_400_BAD_REQUEST)

        logger.info(
            "Challenge authenticated" if authenticated else "Challenge rejected",
            extra={
                "login_session_token": login_session_token,
                "wallet_address": record.claimed_address,
                "authenticated": authenticated
            }
        )
        return authenticated

    async def login(self, login_session_token: str) -> Tuple[User, AuthTokens]:
        """Redeem a successful challenge for the user and a fresh token pair"""
        record = await self.store.get_succeeded(login_session_token)
        if record is None:
            raise NotFoundOrExpiredError()

        # Consume before touching users so a repeated login cannot pass as well
        if not await self.store.consume(login_session_token):
            raise NotFoundOrExpiredError()

        user = await self.users.find_by_address(record.claimed_address)
        if user is None:
            user = await self._provision_user(record.claimed_address)

        tokens = await self.jwt_service.create_tokens(user)

        logger.info(
            "User logged in",
            extra={
                "login_session_token": login_session_token,
                "user_id": str(user.id),
                "wallet_address": user.address
            }
        )
        return user, tokens

    async def _provision_user(self, address: str) -> User:
        try:
            return await self.users.create(UserCreate(
                name=settings.DEFAULT_USER_NAME,
                address=address,
                role=UserRole.USER,
                is_address_verified=True
            ))
        except ConflictError:
            # Another login for the same address created it first
            user = await self.users.find_by_address(address)
            if user is None:
                raise
            return user

    async def refresh_auth(self, refresh_token: str) -> AuthTokens:
        """Rotate a refresh token: the presented one is revoked and a new pair issued"""
        token_data = await self.jwt_service.verify_token(refresh_token, TokenType.REFRESH)

        user = await self.users.get_by_id(token_data.sub)
        if user is None:
            logger.warning(
                "Refresh token for unknown user",
                extra={"user_id": token_data.sub}
            )
            raise UnauthorizedError()

        # Only the request that spends the old token gets a new pair
        if not await self.jwt_service.revoke_token(token_data, reason="Refresh token rotation"):
            raise UnauthorizedError(context={"reason": "revoked"})

        return await self.jwt_service.create_tokens(user)

    async def logout(self, refresh_token: str) -> None:
        """Revoke a refresh token"""
        try:
            token_data = await self.jwt_service.verify_token(refresh_token, TokenType.REFRESH)
        except UnauthorizedError:
            raise NotFoundError()

        if not await self.jwt_service.revoke_token(token_data, reason="Logout"):
            raise NotFoundError()

        logger.info(
            "User logged out",
            extra={
                "user_id": token_data.sub,
                "wallet_address": token_data.address
            }
        )
