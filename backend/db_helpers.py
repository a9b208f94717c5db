"""Async database helper utilities using the asyncpg connection pool.

All functions acquire a connection from the global pool and return it
automatically. Rows come back as plain dicts.

Usage Examples:
    chat = await fetch_one("SELECT * FROM chat WHERE id = $1", chat_id)
    messages = await fetch_all("SELECT * FROM message WHERE chat_id = $1", chat_id)
    await execute("DELETE FROM chat WHERE id = $1", chat_id)

    async with transaction() as conn:
        await conn.execute("DELETE FROM message WHERE chat_id = $1", chat_id)
        await conn.execute("DELETE FROM chat WHERE id = $1", chat_id)

Notes:
    - Uses $1, $2, $3 parameter placeholders (asyncpg format)
"""

import logging
from typing import Any, Dict, List, Optional, AsyncIterator
from contextlib import asynccontextmanager
import asyncpg

from backend.db.pool import get_pool

logger = logging.getLogger(__name__)


async def fetch_one(query: str, *args) -> Optional[Dict[str, Any]]:
    """
    Fetch a single row from the database.

    Returns:
        Dict with column names as keys, or None if no row found
    """
    pool = get_pool()

    try:
        async with pool.acquire() as conn:
            row = await conn.fetchrow(query, *args)
            return dict(row) if row else None

    except Exception as e:
        logger.error(f"Error in fetch_one: {e}", exc_info=True)
        logger.error(f"Query: {query}")
        raise


async def fetch_all(query: str, *args) -> List[Dict[str, Any]]:
    """
    Fetch all rows from the database.

    Returns:
        List of dicts (empty list if no rows)
    """
    pool = get_pool()

    try:
        async with pool.acquire() as conn:
            rows = await conn.fetch(query, *args)
            return [dict(row) for row in rows]

    except Exception as e:
        logger.error(f"Error in fetch_all: {e}", exc_info=True)
        logger.error(f"Query: {query}")
        raise


async def fetch_val(query: str, *args) -> Any:
    """Fetch a single value (first column of first row)."""
    pool = get_pool()

    try:
        async with pool.acquire() as conn:
            return await conn.fetchval(query, *args)

    except Exception as e:
        logger.error(f"Error in fetch_val: {e}", exc_info=True)
        logger.error(f"Query: {query}")
        raise


async def execute(query: str, *args) -> str:
    """
    Execute an INSERT/UPDATE/DELETE query.

    Returns:
        Status string from PostgreSQL (e.g., "DELETE 1")
    """
    pool = get_pool()

    try:
        async with pool.acquire() as conn:
            return await conn.execute(query, *args)

    except Exception as e:
        logger.error(f"Error in execute: {e}", exc_info=True)
        logger.error(f"Query: {query}")
        raise


@asynccontextmanager
async def transaction() -> AsyncIterator[asyncpg.Connection]:
    """
    Run several statements in one transaction.

    Commits when the block exits normally, rolls back on exception.
    """
    pool = get_pool()

    async with pool.acquire() as conn:
        async with conn.transaction():
            yield conn
