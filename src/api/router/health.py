from datetime import datetime
from typing import Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis

from src.core.dependencies import get_redis_client
from src.infra.config.redis import ping_redis
from src.infra.config.settings import settings
from src.infra.database import DatabaseManager, get_database_manager

router = APIRouter(tags=["Health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(
    redis_client: Redis = Depends(get_redis_client),
    db_manager: DatabaseManager = Depends(get_database_manager)
):
    """
    Health check endpoint.
    Reports database and Redis reachability; 503 when either is down.
    """
    services: Dict[str, str] = {
        "database": "healthy" if await db_manager.ping() else "unhealthy",
        "redis": "healthy" if await ping_redis(redis_client) else "unhealthy"
    }
    healthy = all(service_status == "healthy" for service_status in services.values())

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ok" if healthy else "degraded",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "services": services,
            "timestamp": datetime.utcnow().isoformat() + "Z"
        }
    )
