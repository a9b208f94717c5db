"""PostgreSQL chat and message persistence."""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from backend.db_helpers import execute, fetch_all, fetch_one, fetch_val, transaction
from backend.models import Chat, ChatMessage, utcnow
from .base import ChatStore

logger = logging.getLogger(__name__)


def _row_to_chat(row: Dict[str, Any]) -> Chat:
    return Chat(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        visibility=row["visibility"],
        created_at=row["created_at"],
    )


def _row_to_message(row: Dict[str, Any]) -> ChatMessage:
    return ChatMessage(
        id=row["id"],
        chat_id=row["chat_id"],
        role=row["role"],
        content=row["content"],
        created_at=row["created_at"],
    )


class PostgresChatStore(ChatStore):
    """
    Chat store backed by the asyncpg pool.

    Database Tables:
        - chat: id, user_id, title, visibility, created_at
        - message: id, chat_id, role, content, created_at

    Run scripts/init_db.py once to create the tables.
    """

    async def get_chat(self, chat_id: str) -> Optional[Chat]:
        row = await fetch_one(
            "SELECT id, user_id, title, visibility, created_at FROM chat WHERE id = $1",
            chat_id
        )
        return _row_to_chat(row) if row else None

    async def save_chat(self, chat: Chat) -> None:
        await execute(
            """
            INSERT INTO chat (id, user_id, title, visibility, created_at)
            VALUES ($1, $2, $3, $4, $5)
            ON CONFLICT (id) DO UPDATE
            SET title = EXCLUDED.title, visibility = EXCLUDED.visibility
            """,
            chat.id, chat.user_id, chat.title, chat.visibility, chat.created_at
        )
        logger.info(f"✓ Saved chat {chat.id}")

    async def delete_chat(self, chat_id: str) -> Optional[Chat]:
        chat = await self.get_chat(chat_id)
        if chat is None:
            return None

        async with transaction() as conn:
            await conn.execute("DELETE FROM message WHERE chat_id = $1", chat_id)
            await conn.execute("DELETE FROM chat WHERE id = $1", chat_id)

        logger.info(f"✓ Deleted chat {chat_id}")
        return chat

    async def save_messages(self, messages: List[ChatMessage]) -> None:
        if not messages:
            return

        async with transaction() as conn:
            await conn.executemany(
                """
                INSERT INTO message (id, chat_id, role, content, created_at)
                VALUES ($1, $2, $3, $4, $5)
                ON CONFLICT (id) DO NOTHING
                """,
                [
                    (m.id, m.chat_id, m.role, m.content, m.created_at)
                    for m in messages
                ]
            )
        logger.debug(f"Saved {len(messages)} messages")

    async def get_messages_by_chat_id(self, chat_id: str) -> List[ChatMessage]:
        rows = await fetch_all(
            """
            SELECT id, chat_id, role, content, created_at
            FROM message
            WHERE chat_id = $1
            ORDER BY created_at ASC
            """,
            chat_id
        )
        return [_row_to_message(row) for row in rows]

    async def get_message_count_by_user_id(self, user_id: str, hours: int = 24) -> int:
        since = utcnow() - timedelta(hours=hours)
        count = await fetch_val(
            """
            SELECT COUNT(message.id)
            FROM message
            JOIN chat ON chat.id = message.chat_id
            WHERE chat.user_id = $1
              AND message.role = 'user'
              AND message.created_at >= $2
            """,
            user_id, since
        )
        return int(count or 0)
