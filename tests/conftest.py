"""
Shared test fixtures.

Stores run against in-memory SQLite; Redis is an AsyncMock backed by a dict.
"""

from typing import AsyncGenerator, Dict
from unittest.mock import AsyncMock

import httpx
import pytest
from eth_account import Account
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.app import create_app
from src.core.dependencies import get_redis_client
from src.core.service.auth.auth_service import AuthService
from src.core.service.auth.cache.token_store import TokenStore
from src.core.service.auth.jwt_service import JWTService
from src.infra.database import get_async_session, get_database_manager
from src.infra.models import Base
from src.infra.repository.challenge_store import ChallengeStore
from src.infra.repository.user_repository import UserRepository


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def redis_data() -> Dict[str, str]:
    return {}


@pytest.fixture
def redis_client(redis_data):
    """Dict backed stand-in for the redis.asyncio client"""
    client = AsyncMock()

    async def set_(key, value, ex=None, nx=False):
        if nx and key in redis_data:
            return None
        redis_data[key] = value
        return True

    async def exists(key):
        return int(key in redis_data)

    client.set.side_effect = set_
    client.exists.side_effect = exists
    client.ping.return_value = True
    return client


@pytest.fixture
def challenge_store(db_session):
    return ChallengeStore(db_session)


@pytest.fixture
def user_repository(db_session):
    return UserRepository(db_session)


@pytest.fixture
def token_store(redis_client):
    return TokenStore(redis_client)


@pytest.fixture
def jwt_service(token_store):
    return JWTService(token_store)


@pytest.fixture
def auth_service(challenge_store, user_repository, jwt_service):
    return AuthService(challenge_store, user_repository, jwt_service)


@pytest.fixture
def wallet():
    """Throwaway wallet: lower-cased address and raw private key"""
    account = Account.create()
    return {
        "address": account.address.lower(),
        "key": bytes(account.key)
    }


@pytest.fixture
def app(session_factory, redis_client):
    app = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    async def override_redis():
        return redis_client

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_redis_client] = override_redis
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client on the ASGI app; startup events are not run"""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def healthy_database(app):
    db_manager = AsyncMock()
    db_manager.ping.return_value = True
    app.dependency_overrides[get_database_manager] = lambda: db_manager
    return db_manager
