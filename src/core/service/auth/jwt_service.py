import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError
from pydantic import ValidationError as PydanticValidationError

from src.core.exceptions.base import UnauthorizedError
from src.core.logger.logger import get_logger
from src.core.service.auth.cache.token_store import TokenStore
from src.core.service.auth.models.token import AuthTokens, Credential, TokenPayload, TokenType
from src.core.service.auth.models.user import User
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class JWTService:
    """Issues, verifies and revokes session tokens"""

    def __init__(self, token_store: TokenStore):
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.access_token_expire_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
        self.refresh_token_expire_days = settings.REFRESH_TOKEN_EXPIRE_DAYS
        self.token_store = token_store

    def _create_token(
        self,
        user: User,
        token_type: TokenType,
        expires_delta: Optional[timedelta] = None,
        secret_key: Optional[str] = None
    ) -> Credential:
        """
        Create a JWT token with the given parameters
        Returns the token together with its expiration datetime
        """
        if expires_delta is None:
            if token_type == TokenType.ACCESS:
                expires_delta = timedelta(minutes=self.access_token_expire_minutes)
            else:
                expires_delta = timedelta(days=self.refresh_token_expire_days)

        issued_at = datetime.now(timezone.utc)
        expires_at = issued_at + expires_delta

        to_encode = TokenPayload(
            sub=str(user.id),
            address=user.address,
            exp=expires_at,
            iat=issued_at,
            type=token_type,
            jti=str(uuid.uuid4())
        )

        encoded_jwt = jwt.encode(
            to_encode.model_dump(),
            secret_key or self.secret_key,
            algorithm=self.algorithm
        )

        return Credential(token=encoded_jwt, expires=expires_at)

    async def create_tokens(self, user: User) -> AuthTokens:
        """Generate new access and refresh token pair"""
        tokens = AuthTokens(
            access=self._create_token(user, TokenType.ACCESS),
            refresh=self._create_token(user, TokenType.REFRESH)
        )

        logger.info(
            "Issued token pair",
            extra={
                "user_id": str(user.id),
                "wallet_address": user.address,
                "access_expires": tokens.access.expires.isoformat()
            }
        )
        return tokens

    async def verify_token(self, token: str, expected_type: TokenType) -> TokenPayload:
        """
        Verify a JWT token and return its payload
        Raises UnauthorizedError if the token is invalid, expired, of the wrong type or revoked
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm]
            )
            token_data = TokenPayload(**payload)

        except ExpiredSignatureError:
            logger.info(
                "Token expired",
                extra={"token_type": expected_type.value}
            )
            raise UnauthorizedError(context={"reason": "expired"})

        except (InvalidTokenError, PydanticValidationError) as e:
            logger.warning(
                "Invalid token",
                extra={
                    "token_type": expected_type.value,
                    "error": str(e)
                }
            )
            raise UnauthorizedError(context={"reason": "invalid"})

        # Verify token type matches expected
        if token_data.type != expected_type:
            logger.warning(
                "Token type mismatch",
                extra={
                    "expected_type": expected_type.value,
                    "actual_type": token_data.type.value,
                    "wallet_address": token_data.address
                }
            )
            raise UnauthorizedError(context={"reason": "wrong_type"})

        if await self.token_store.is_blacklisted(token_data.jti):
            logger.warning(
                "Blacklisted token used",
                extra={
                    "jti": token_data.jti,
                    "wallet_address": token_data.address
                }
            )
            raise UnauthorizedError(context={"reason": "revoked"})

        return token_data

    async def revoke_token(self, token_data: TokenPayload, reason: Optional[str] = None) -> bool:
        """Revoke a verified token; False when another request revoked it first"""
        return await self.token_store.add_to_blacklist(
            jti=token_data.jti,
            exp=token_data.exp,
            reason=reason
        )
