"""Database access layer for chats and messages.

Main exports:
- init_pool / get_pool / close_pool / check_pool_health: asyncpg pool lifecycle
- ChatStore: storage contract
- PostgresChatStore: asyncpg implementation (see backend/db_helpers.py)
- InMemoryChatStore: process-local implementation
"""

from .pool import (
    DatabaseConfig,
    init_pool,
    get_pool,
    close_pool,
    check_pool_health,
)
from .base import ChatStore
from .memory import InMemoryChatStore
from .chat_db import PostgresChatStore

__all__ = [
    "DatabaseConfig",
    "init_pool",
    "get_pool",
    "close_pool",
    "check_pool_health",
    "ChatStore",
    "InMemoryChatStore",
    "PostgresChatStore",
]
