#!/usr/bin/env python
"""Initialize the PostgreSQL schema for Swarm Chat."""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.db.pool import DatabaseConfig, close_pool, init_pool  # noqa: E402


SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS chat (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        visibility TEXT NOT NULL DEFAULT 'private'
            CHECK (visibility IN ('public', 'private')),
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS message (
        id TEXT PRIMARY KEY,
        chat_id TEXT NOT NULL REFERENCES chat(id) ON DELETE CASCADE,
        role TEXT NOT NULL,
        content TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_chat_user_id ON chat(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_message_chat_created ON message(chat_id, created_at)",
]


async def create_schema() -> None:
    pool = await init_pool()
    try:
        async with pool.acquire() as conn:
            async with conn.transaction():
                for statement in SCHEMA:
                    await conn.execute(statement)
    finally:
        await close_pool()


def main() -> int:
    print("🔍 Swarm Chat - Database Initialization")
    print("=" * 60)
    print(f"\n📊 {DatabaseConfig()}")

    print("\n📋 Creating tables...")
    try:
        asyncio.run(create_schema())
    except Exception as e:
        print(f"❌ Error creating tables: {e}")
        return 1

    print("✅ Tables chat and message are ready")
    return 0


if __name__ == "__main__":
    sys.exit(main())
