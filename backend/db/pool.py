"""Async PostgreSQL connection pool management using asyncpg.

The pool backs the chat/message store. It is initialized on FastAPI startup
when ``STORAGE_BACKEND=postgres`` and closed on shutdown.

Usage:
    await init_pool()

    pool = get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch("SELECT * FROM message WHERE chat_id = $1", chat_id)

    await close_pool()

Environment Variables:
    DATABASE_URL: Full PostgreSQL connection string (preferred)
    Or individual components:
        DATABASE_NAME (default: swarm_chat), DATABASE_USER (default: postgres),
        DATABASE_HOST (default: localhost), DATABASE_PORT (default: 5432),
        DATABASE_PASSWORD (optional)
    Pool configuration:
        DB_MIN_POOL_SIZE (default: 2), DB_MAX_POOL_SIZE (default: 20),
        DB_COMMAND_TIMEOUT in seconds (default: 30)
"""

import os
import logging
from typing import Optional
import asyncpg
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class DatabaseConfig:
    """Configuration for PostgreSQL connection pool."""

    def __init__(self):
        """Initialize database configuration from environment variables."""
        self.database_url = os.getenv("DATABASE_URL")

        self.database_name = os.getenv("DATABASE_NAME", "swarm_chat")
        self.database_user = os.getenv("DATABASE_USER", "postgres")
        self.database_host = os.getenv("DATABASE_HOST", "localhost")
        self.database_port = int(os.getenv("DATABASE_PORT", "5432"))
        self.database_password = os.getenv("DATABASE_PASSWORD")

        self.min_pool_size = int(os.getenv("DB_MIN_POOL_SIZE", "2"))
        self.max_pool_size = int(os.getenv("DB_MAX_POOL_SIZE", "20"))
        self.command_timeout = float(os.getenv("DB_COMMAND_TIMEOUT", "30.0"))

    def get_dsn(self) -> str:
        """
        Get PostgreSQL DSN for connection.

        Uses DATABASE_URL when set, otherwise builds the DSN from components.
        """
        if self.database_url:
            return self.database_url

        credentials = self.database_user
        if self.database_password:
            credentials += f":{self.database_password}"

        return (
            f"postgresql://{credentials}@{self.database_host}:"
            f"{self.database_port}/{self.database_name}"
        )

    def __repr__(self) -> str:
        """String representation (safe - no password)."""
        return (
            f"DatabaseConfig("
            f"host={self.database_host}, "
            f"port={self.database_port}, "
            f"database={self.database_name}, "
            f"user={self.database_user}, "
            f"pool_size={self.min_pool_size}-{self.max_pool_size})"
        )


# Global connection pool singleton
_pool: Optional[asyncpg.Pool] = None
_config: Optional[DatabaseConfig] = None


async def init_pool() -> asyncpg.Pool:
    """
    Initialize the global async connection pool.

    Safe to call multiple times (returns existing pool if already initialized).

    Raises:
        asyncpg.PostgresError: If pool initialization fails
    """
    global _pool, _config

    if _pool is not None:
        logger.info("Connection pool already initialized, returning existing pool")
        return _pool

    _config = DatabaseConfig()
    logger.info(f"Initializing connection pool with config: {_config}")

    try:
        _pool = await asyncpg.create_pool(
            dsn=_config.get_dsn(),
            min_size=_config.min_pool_size,
            max_size=_config.max_pool_size,
            command_timeout=_config.command_timeout,
        )

        async with _pool.acquire() as conn:
            version = await conn.fetchval("SELECT version()")
            logger.info("✓ Database pool initialized successfully")
            logger.info(f"  PostgreSQL version: {version.split(',')[0]}")

        return _pool

    except Exception as e:
        logger.error(f"✗ Failed to initialize database pool: {e}", exc_info=True)
        _pool = None
        _config = None
        raise


def get_pool() -> asyncpg.Pool:
    """
    Get the global async connection pool.

    Raises:
        RuntimeError: If pool has not been initialized (call init_pool() first)
    """
    if _pool is None:
        raise RuntimeError(
            "Database pool not initialized. Call init_pool() in FastAPI startup event."
        )
    return _pool


async def close_pool() -> None:
    """Close the global connection pool. Safe to call multiple times."""
    global _pool, _config

    if _pool is None:
        logger.info("Connection pool already closed or not initialized")
        return

    try:
        await _pool.close()
        logger.info("✓ Database pool closed successfully")
    except Exception as e:
        logger.error(f"Error closing database pool: {e}", exc_info=True)
    finally:
        _pool = None
        _config = None


async def check_pool_health() -> dict:
    """
    Check the health and status of the connection pool.

    Returns:
        dict: status ("healthy", "degraded" or "unavailable") plus pool stats
    """
    if _pool is None:
        return {
            "status": "unavailable",
            "error": "Pool not initialized"
        }

    try:
        async with _pool.acquire() as conn:
            await conn.fetchval("SELECT 1")

        return {
            "status": "healthy",
            "pool_size": _pool.get_size(),
            "free_connections": _pool.get_idle_size(),
        }

    except Exception as e:
        logger.error(f"Pool health check failed: {e}", exc_info=True)
        return {
            "status": "degraded",
            "error": str(e),
            "pool_size": _pool.get_size() if _pool else 0,
        }
