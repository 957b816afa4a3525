import json
from datetime import datetime, timedelta, timezone
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from src.core.exceptions.base import StoreError
from src.core.logger.logger import get_logger
from src.core.service.auth.models.token import TokenBlacklist
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class TokenStore:
    """Redis-based store for managing blacklisted tokens"""

    def __init__(self, redis_client: Redis):
        self.redis = redis_client
        self.key_prefix = "blacklist:token:"
        self.margin_minutes = settings.TOKEN_BLACKLIST_EXPIRE_MARGIN_MINUTES

    def _get_key(self, jti: str) -> str:
        return f"{self.key_prefix}{jti}"

    async def add_to_blacklist(
        self,
        jti: str,
        exp: datetime,
        reason: Optional[str] = None
    ) -> bool:
        """
        Add a token to the blacklist
        The entry is removed by Redis after the token's expiration (plus margin)

        Returns:
            bool: False if the token was already blacklisted by another caller
        """
        blacklist_entry = TokenBlacklist(
            jti=jti,
            exp=exp,
            reason=reason
        )

        # TTL: time until expiration + margin
        ttl = exp - datetime.now(timezone.utc) + timedelta(minutes=self.margin_minutes)
        ttl_seconds = int(ttl.total_seconds())

        # Already expired tokens are rejected by signature checks anyway
        if ttl_seconds <= 0:
            logger.info(
                "Skipping blacklist for expired token",
                extra={"jti": jti}
            )
            return True

        try:
            # NX makes the write the single point where a token is spent
            added = await self.redis.set(
                self._get_key(jti),
                json.dumps(blacklist_entry.model_dump(mode="json")),
                ex=ttl_seconds,
                nx=True
            )

        except RedisError as e:
            logger.error(
                "Failed to blacklist token",
                extra={
                    "jti": jti,
                    "error": str(e)
                }
            )
            raise StoreError("Error with revoking token") from e

        if not added:
            logger.warning(
                "Token already blacklisted",
                extra={"jti": jti, "reason": reason}
            )
            return False

        logger.info(
            "Token blacklisted",
            extra={
                "jti": jti,
                "expires_in": ttl_seconds,
                "reason": reason
            }
        )
        return True

    async def is_blacklisted(self, jti: str) -> bool:
        """Check if a token is blacklisted; fails closed when Redis is unreachable"""
        try:
            exists = await self.redis.exists(self._get_key(jti))

        except RedisError as e:
            logger.error(
                "Failed to check token blacklist",
                extra={
                    "jti": jti,
                    "error": str(e),
                    "error_type": type(e).__name__
                }
            )
            raise StoreError("Error with checking token") from e

        if exists:
            logger.info(
                "Blacklisted token access attempt",
                extra={"jti": jti}
            )

        return bool(exists)
