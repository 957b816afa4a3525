import redis.asyncio as redis
from functools import lru_cache
from src.infra.config.settings import settings
from src.core.logger.logger import logger


@lru_cache()
def get_redis_pool():
    """Get Redis connection pool (cached)"""
    return redis.ConnectionPool.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        max_connections=settings.REDIS_MAX_CONNECTIONS
    )


async def get_redis() -> redis.Redis:
    """Get a Redis client on the shared pool; connection errors surface on first use"""
    return redis.Redis(connection_pool=get_redis_pool())


async def ping_redis(redis_client: redis.Redis) -> bool:
    """Check that Redis answers; used by the health endpoint"""
    try:
        return bool(await redis_client.ping())
    except redis.RedisError as e:
        logger.error("Redis ping failed", extra={"error": str(e)})
        return False
