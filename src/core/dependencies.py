"""
FastAPI dependency injection functions.
Each request gets repositories bound to its own database session.
"""

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.authentication.jwt_bearer import CustomHTTPBearer
from src.infra.config.redis import get_redis
from src.infra.database import get_async_session
from src.core.exceptions.base import UnauthorizedError
from src.core.service.auth.auth_service import AuthService
from src.core.service.auth.jwt_service import JWTService
from src.core.service.auth.cache.token_store import TokenStore
from src.core.service.auth.models.token import TokenType
from src.core.service.auth.models.user import User
from src.core.service.auth.signature_verification import SignatureVerificationService
from src.infra.repository.challenge_store import ChallengeStore
from src.infra.repository.user_repository import UserRepository

bearer_scheme = CustomHTTPBearer()


async def get_redis_client() -> Redis:
    """Get Redis client dependency."""
    return await get_redis()


async def get_user_repository(session: AsyncSession = Depends(get_async_session)) -> UserRepository:
    """Get user repository with SQLAlchemy session dependency."""
    return UserRepository(session)


async def get_challenge_store(session: AsyncSession = Depends(get_async_session)) -> ChallengeStore:
    """Get login challenge store with SQLAlchemy session dependency."""
    return ChallengeStore(session)


async def get_token_store(redis_client: Redis = Depends(get_redis_client)) -> TokenStore:
    """Get token store with Redis dependency."""
    return TokenStore(redis_client)


async def get_jwt_service(token_store: TokenStore = Depends(get_token_store)) -> JWTService:
    """Get JWT service backed by the token blacklist."""
    return JWTService(token_store)


async def get_auth_service(
    challenge_store: ChallengeStore = Depends(get_challenge_store),
    user_repository: UserRepository = Depends(get_user_repository),
    jwt_service: JWTService = Depends(get_jwt_service)
) -> AuthService:
    """Get the wallet authentication service."""
    return AuthService(challenge_store, user_repository, jwt_service, SignatureVerificationService())


async def get_current_user(
    access_token: str = Depends(bearer_scheme),
    jwt_service: JWTService = Depends(get_jwt_service),
    user_repository: UserRepository = Depends(get_user_repository)
) -> User:
    """Resolve the user behind a bearer access token."""
    token_data = await jwt_service.verify_token(access_token, TokenType.ACCESS)

    user = await user_repository.get_by_id(token_data.sub)
    if user is None:
        raise UnauthorizedError()
    return user
