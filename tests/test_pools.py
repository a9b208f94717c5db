"""Unit tests for the shared connection pools.

This module tests:
- HttpClientConfig / RedisConfig / DatabaseConfig loading from environment
- HTTP client and Redis pool lifecycle
- Health checks when pools are missing or failing
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from backend import http_pool, redis_client
from backend.db import pool as db_pool


@pytest.fixture(autouse=True)
async def cleanup_pools():
    """Reset global pool state after each test to ensure test isolation."""
    yield
    await http_pool.close_http_client()
    redis_client._redis_pool = None
    redis_client._redis_config = None
    db_pool._pool = None
    db_pool._config = None


@pytest.fixture
def mock_http_env(monkeypatch):
    monkeypatch.setenv("HTTP_MAX_CONNECTIONS", "50")
    monkeypatch.setenv("HTTP_MAX_KEEPALIVE_CONNECTIONS", "10")
    monkeypatch.setenv("HTTP_READ_TIMEOUT", "7.5")
    monkeypatch.setenv("HTTP2_ENABLED", "false")


# ==================== HTTP client ====================


@pytest.mark.unit
def test_http_client_config(mock_http_env):
    config = http_pool.HttpClientConfig()

    assert config.max_connections == 50
    assert config.max_keepalive_connections == 10
    assert config.get_timeout()["read"] == 7.5
    assert config.http2_enabled is False
    assert "max_connections=50" in repr(config)


@pytest.mark.unit
def test_get_http_client_before_init_raises():
    with pytest.raises(RuntimeError, match="not initialized"):
        http_pool.get_http_client()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_http_client_lifecycle(mock_http_env):
    client = await http_pool.init_http_client()

    assert http_pool.get_http_client() is client
    assert await http_pool.init_http_client() is client
    health = await http_pool.check_http_client_health()
    assert health["status"] == "healthy"
    assert health["max_connections"] == 50

    await http_pool.close_http_client()

    assert client.is_closed
    assert (await http_pool.check_http_client_health())["status"] == "unavailable"
    # Closing twice is a no-op
    await http_pool.close_http_client()


# ==================== Redis ====================


@pytest.mark.unit
def test_redis_config_builds_url(monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("REDIS_HOST", "cache")
    monkeypatch.setenv("REDIS_PASSWORD", "secret")
    monkeypatch.setenv("REDIS_DB", "2")

    config = redis_client.RedisConfig()

    assert config.enabled is True
    assert config.get_url() == "redis://:secret@cache:6379/2"
    assert "secret" not in repr(config)


@pytest.mark.unit
def test_redis_url_takes_precedence(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://example:6380/1")

    assert redis_client.RedisConfig().get_url() == "redis://example:6380/1"
    assert redis_client.is_redis_configured() is True


@pytest.mark.unit
def test_redis_not_configured(monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("REDIS_HOST", raising=False)

    assert redis_client.is_redis_configured() is False
    assert redis_client.redis_pool_ready() is False


@pytest.mark.unit
@pytest.mark.asyncio
async def test_redis_pool_lifecycle(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    fake = MagicMock()
    fake.ping = AsyncMock(return_value=True)
    fake.aclose = AsyncMock()

    with patch("backend.redis_client.aioredis.from_url", return_value=fake) as from_url:
        pool = await redis_client.init_redis_pool()

    assert pool is fake
    assert from_url.call_args.kwargs["decode_responses"] is True
    assert redis_client.redis_pool_ready() is True
    assert (await redis_client.check_redis_health())["status"] == "healthy"

    await redis_client.close_redis_pool()

    fake.aclose.assert_awaited_once()
    with pytest.raises(RuntimeError):
        redis_client.get_redis_pool()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_redis_init_failure_resets_state(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    fake = MagicMock()
    fake.ping = AsyncMock(side_effect=ConnectionError("refused"))

    with patch("backend.redis_client.aioredis.from_url", return_value=fake):
        with pytest.raises(ConnectionError):
            await redis_client.init_redis_pool()

    assert redis_client.redis_pool_ready() is False
    assert (await redis_client.check_redis_health())["status"] == "unavailable"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_redis_health_degraded_when_ping_fails():
    fake = MagicMock()
    fake.ping = AsyncMock(side_effect=ConnectionError("down"))
    redis_client._redis_pool = fake

    health = await redis_client.check_redis_health()

    assert health["status"] == "degraded"
    assert "down" in health["error"]


# ==================== Postgres ====================


@pytest.mark.unit
def test_database_config_dsn(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("DATABASE_NAME", "chat")
    monkeypatch.setenv("DATABASE_USER", "app")
    monkeypatch.setenv("DATABASE_PASSWORD", "pw")
    monkeypatch.setenv("DATABASE_HOST", "db")

    config = db_pool.DatabaseConfig()

    assert config.get_dsn() == "postgresql://app:pw@db:5432/chat"
    assert "pw" not in repr(config)


@pytest.mark.unit
def test_database_url_takes_precedence(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u@h/d")

    assert db_pool.DatabaseConfig().get_dsn() == "postgresql://u@h/d"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_database_pool_unavailable_before_init():
    with pytest.raises(RuntimeError):
        db_pool.get_pool()

    assert (await db_pool.check_pool_health())["status"] == "unavailable"
