"""Async Redis client wrapper with connection pooling and error handling.

Redis holds the per-chat list of stream identifiers that makes streams
resumable after a disconnect. When Redis is not configured, resumable
streams are disabled and the resume endpoint answers 204.

Usage:
    # In FastAPI startup event
    await init_redis_pool()

    # In application code
    client = AsyncRedisClient(get_redis_pool())
    await client.rpush_with_ttl("chat:123:streams", "stream-id", ttl=86400)
    ids = await client.lrange("chat:123:streams")

    # In FastAPI shutdown event
    await close_redis_pool()
"""

import os
import logging
from typing import List, Optional

from redis import asyncio as aioredis
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class RedisConfig:
    """Configuration for Redis connection pool.

    Loads settings from environment variables. ``REDIS_URL`` takes precedence
    over the individual host/port/db settings.
    """

    def __init__(self):
        """Initialize Redis configuration from environment variables."""
        self.url = os.getenv("REDIS_URL")
        self.host = os.getenv("REDIS_HOST", "localhost")
        self.port = int(os.getenv("REDIS_PORT", "6379"))
        self.db = int(os.getenv("REDIS_DB", "0"))
        self.password = os.getenv("REDIS_PASSWORD", None)
        self.max_connections = int(os.getenv("REDIS_MAX_CONNECTIONS", "10"))
        self.socket_timeout = int(os.getenv("REDIS_SOCKET_TIMEOUT", "5"))
        self.socket_connect_timeout = int(os.getenv("REDIS_SOCKET_CONNECT_TIMEOUT", "5"))
        self.retry_on_timeout = os.getenv("REDIS_RETRY_ON_TIMEOUT", "true").lower() == "true"

    @property
    def enabled(self) -> bool:
        """Redis is considered configured when REDIS_URL or REDIS_HOST is set."""
        return bool(self.url or os.getenv("REDIS_HOST"))

    def get_url(self) -> str:
        if self.url:
            return self.url
        redis_url = "redis://"
        if self.password:
            redis_url += f":{self.password}@"
        redis_url += f"{self.host}:{self.port}/{self.db}"
        return redis_url

    def __repr__(self) -> str:
        """String representation (safe - no password)."""
        return (
            f"RedisConfig("
            f"host={self.host}, "
            f"port={self.port}, "
            f"db={self.db}, "
            f"max_connections={self.max_connections})"
        )


# Global async Redis pool singleton
_redis_pool: Optional[aioredis.Redis] = None
_redis_config: Optional[RedisConfig] = None


class AsyncRedisClient:
    """Async Redis client wrapper.

    Operations log and swallow Redis errors, returning a neutral value, so a
    Redis outage degrades resumability instead of failing chat requests.
    """

    def __init__(self, redis_client: aioredis.Redis):
        self.client = redis_client

    async def ping(self) -> bool:
        try:
            result = await self.client.ping()
            logger.debug("Redis ping successful")
            return result
        except Exception as e:
            logger.error(f"Redis ping failed: {e}")
            return False

    async def rpush_with_ttl(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """
        Append a value to a list and refresh the list's TTL atomically.

        Args:
            key: List key
            value: Value to append
            ttl: Time-to-live in seconds (None = no expiration)

        Returns:
            True if successful, False otherwise
        """
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.rpush(key, value)
                if ttl:
                    pipe.expire(key, ttl)
                await pipe.execute()
            logger.debug(f"Redis RPUSH: {key} (ttl={ttl})")
            return True
        except Exception as e:
            logger.error(f"Redis RPUSH failed for key '{key}': {e}")
            return False

    async def lrange(self, key: str, start: int = 0, end: int = -1) -> List[str]:
        """
        Read a list range.

        Returns:
            List values (empty list on error or missing key)
        """
        try:
            values = await self.client.lrange(key, start, end)
            return list(values or [])
        except Exception as e:
            logger.error(f"Redis LRANGE failed for key '{key}': {e}")
            return []

    async def delete(self, *keys: str) -> int:
        try:
            count = await self.client.delete(*keys)
            logger.debug(f"Redis DELETE: {keys} (count={count})")
            return count
        except Exception as e:
            logger.error(f"Redis DELETE failed for keys {keys}: {e}")
            return 0


def is_redis_configured() -> bool:
    return RedisConfig().enabled


async def init_redis_pool() -> aioredis.Redis:
    """Initialize the global async Redis connection pool.

    Safe to call multiple times (returns existing pool if already initialized).

    Raises:
        Exception: If pool initialization fails
    """
    global _redis_pool, _redis_config

    if _redis_pool is not None:
        logger.info("Redis pool already initialized, returning existing pool")
        return _redis_pool

    _redis_config = RedisConfig()
    logger.info(f"Initializing Redis pool with config: {_redis_config}")

    try:
        _redis_pool = aioredis.from_url(
            _redis_config.get_url(),
            max_connections=_redis_config.max_connections,
            socket_timeout=_redis_config.socket_timeout,
            socket_connect_timeout=_redis_config.socket_connect_timeout,
            retry_on_timeout=_redis_config.retry_on_timeout,
            decode_responses=True,  # Return strings instead of bytes
        )

        await _redis_pool.ping()
        logger.info("✓ Redis pool initialized successfully")
        return _redis_pool

    except Exception as e:
        logger.error(f"✗ Failed to initialize Redis pool: {e}", exc_info=True)
        _redis_pool = None
        _redis_config = None
        raise


def get_redis_pool() -> aioredis.Redis:
    """Get the global async Redis connection pool.

    Raises:
        RuntimeError: If pool has not been initialized
    """
    if _redis_pool is None:
        raise RuntimeError(
            "Redis pool has not been initialized. "
            "Call init_redis_pool() during application startup."
        )
    return _redis_pool


def redis_pool_ready() -> bool:
    return _redis_pool is not None


async def close_redis_pool():
    """Close the global async Redis connection pool."""
    global _redis_pool, _redis_config

    if _redis_pool is None:
        logger.info("Redis pool is not initialized, nothing to close")
        return

    try:
        await _redis_pool.aclose()
        logger.info("✓ Redis pool closed successfully")
    except Exception as e:
        logger.error(f"Error closing Redis pool: {e}", exc_info=True)
    finally:
        _redis_pool = None
        _redis_config = None


async def check_redis_health() -> dict:
    """
    Check the health and status of the Redis connection pool.

    Returns:
        dict: status ("healthy", "degraded" or "unavailable") plus details
    """
    if _redis_pool is None:
        return {
            "status": "unavailable",
            "error": "Pool not initialized"
        }

    try:
        await _redis_pool.ping()
        return {
            "status": "healthy",
            "host": _redis_config.host if _redis_config else None,
            "port": _redis_config.port if _redis_config else None,
            "db": _redis_config.db if _redis_config else None,
            "max_connections": _redis_config.max_connections if _redis_config else None,
        }

    except Exception as e:
        logger.error(f"Redis health check failed: {e}", exc_info=True)
        return {
            "status": "degraded",
            "error": str(e),
            "host": _redis_config.host if _redis_config else None,
            "port": _redis_config.port if _redis_config else None,
        }
