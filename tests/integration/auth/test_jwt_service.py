import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.core.exceptions.base import StoreError, UnauthorizedError
from src.core.service.auth.models.token import TokenType
from src.core.service.auth.models.user import User
from src.infra.config.settings import get_settings

settings = get_settings()


@pytest.fixture
def user():
    return User(id=uuid.uuid4(), name="unnamed", address="0x742d35cc6634c0532925a3b844bc454e4438f44e")


@pytest.mark.asyncio
async def test_create_tokens(jwt_service, user):
    """Should create valid access and refresh tokens"""
    tokens = await jwt_service.create_tokens(user)

    access_payload = await jwt_service.verify_token(tokens.access.token, TokenType.ACCESS)
    refresh_payload = await jwt_service.verify_token(tokens.refresh.token, TokenType.REFRESH)

    assert access_payload.sub == str(user.id)
    assert access_payload.address == user.address
    assert refresh_payload.type == TokenType.REFRESH
    assert access_payload.jti != refresh_payload.jti
    assert tokens.access.expires < tokens.refresh.expires
    assert tokens.access.expires <= datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


@pytest.mark.asyncio
async def test_verify_token_with_wrong_type(jwt_service, user):
    """Should reject token when used with wrong type"""
    tokens = await jwt_service.create_tokens(user)

    with pytest.raises(UnauthorizedError) as exc_info:
        await jwt_service.verify_token(tokens.access.token, TokenType.REFRESH)

    assert exc_info.value.status_code == 401
    assert exc_info.value.context["reason"] == "wrong_type"


@pytest.mark.asyncio
async def test_verify_expired_token(jwt_service, user):
    """Should reject expired tokens"""
    credential = jwt_service._create_token(user, TokenType.ACCESS, expires_delta=timedelta(seconds=-1))

    with pytest.raises(UnauthorizedError) as exc_info:
        await jwt_service.verify_token(credential.token, TokenType.ACCESS)

    assert exc_info.value.context["reason"] == "expired"


@pytest.mark.asyncio
async def test_verify_token_signed_with_other_key(jwt_service, user):
    credential = jwt_service._create_token(user, TokenType.ACCESS, secret_key="another-long-secret-key-for-tests")

    with pytest.raises(UnauthorizedError) as exc_info:
        await jwt_service.verify_token(credential.token, TokenType.ACCESS)

    assert exc_info.value.context["reason"] == "invalid"


@pytest.mark.asyncio
async def test_verify_token_missing_claims(jwt_service):
    token = jwt.encode(
        {"sub": "someone", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )

    with pytest.raises(UnauthorizedError):
        await jwt_service.verify_token(token, TokenType.ACCESS)


@pytest.mark.asyncio
async def test_revoked_token_is_rejected(jwt_service, user, redis_data):
    tokens = await jwt_service.create_tokens(user)
    payload = await jwt_service.verify_token(tokens.refresh.token, TokenType.REFRESH)

    await jwt_service.revoke_token(payload, reason="Logout")

    assert f"blacklist:token:{payload.jti}" in redis_data
    with pytest.raises(UnauthorizedError) as exc_info:
        await jwt_service.verify_token(tokens.refresh.token, TokenType.REFRESH)
    assert exc_info.value.context["reason"] == "revoked"

    # The access token has its own id and stays valid
    await jwt_service.verify_token(tokens.access.token, TokenType.ACCESS)


@pytest.mark.asyncio
async def test_blacklist_ttl_covers_token_lifetime(token_store, redis_client):
    exp = datetime.now(timezone.utc) + timedelta(minutes=10)

    assert await token_store.add_to_blacklist("some-jti", exp) is True

    call = redis_client.set.await_args
    assert call.args[0] == "blacklist:token:some-jti"
    assert call.kwargs["nx"] is True
    assert 14 * 60 < call.kwargs["ex"] <= 15 * 60


@pytest.mark.asyncio
async def test_blacklisting_long_expired_token_is_skipped(token_store, redis_client):
    await token_store.add_to_blacklist("old-jti", datetime.now(timezone.utc) - timedelta(hours=1))

    redis_client.set.assert_not_awaited()


@pytest.mark.asyncio
async def test_blacklist_check_fails_closed(token_store, redis_client):
    redis_client.exists.side_effect = RedisConnectionError("connection refused")

    with pytest.raises(StoreError):
        await token_store.is_blacklisted("some-jti")


@pytest.mark.asyncio
async def test_blacklist_write_failure_raises(token_store, redis_client):
    redis_client.set.side_effect = RedisConnectionError("connection refused")

    with pytest.raises(StoreError):
        await token_store.add_to_blacklist("some-jti", datetime.now(timezone.utc) + timedelta(minutes=10))


@pytest.mark.asyncio
async def test_blacklist_write_is_single_use(token_store, redis_data):
    exp = datetime.now(timezone.utc) + timedelta(minutes=10)

    assert await token_store.add_to_blacklist("some-jti", exp, reason="Logout") is True
    assert await token_store.add_to_blacklist("some-jti", exp, reason="Logout") is False
    assert list(redis_data) == ["blacklist:token:some-jti"]


@pytest.mark.asyncio
async def test_revoke_token_reports_lost_write(jwt_service, user):
    tokens = await jwt_service.create_tokens(user)
    payload = await jwt_service.verify_token(tokens.refresh.token, TokenType.REFRESH)

    assert await jwt_service.revoke_token(payload) is True
    assert await jwt_service.revoke_token(payload) is False
