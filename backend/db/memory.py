"""Process-local chat store used for development and tests."""

import asyncio
from datetime import timedelta
from typing import Dict, List, Optional

from backend.models import Chat, ChatMessage, utcnow
from .base import ChatStore


class InMemoryChatStore(ChatStore):
    def __init__(self):
        self._chats: Dict[str, Chat] = {}
        self._messages: Dict[str, List[ChatMessage]] = {}
        self._lock = asyncio.Lock()

    async def get_chat(self, chat_id: str) -> Optional[Chat]:
        async with self._lock:
            return self._chats.get(chat_id)

    async def save_chat(self, chat: Chat) -> None:
        async with self._lock:
            self._chats[chat.id] = chat

    async def delete_chat(self, chat_id: str) -> Optional[Chat]:
        async with self._lock:
            self._messages.pop(chat_id, None)
            return self._chats.pop(chat_id, None)

    async def save_messages(self, messages: List[ChatMessage]) -> None:
        async with self._lock:
            for message in messages:
                self._messages.setdefault(message.chat_id, []).append(message)

    async def get_messages_by_chat_id(self, chat_id: str) -> List[ChatMessage]:
        async with self._lock:
            messages = list(self._messages.get(chat_id, []))
        return sorted(messages, key=lambda m: m.created_at)

    async def get_message_count_by_user_id(self, user_id: str, hours: int = 24) -> int:
        since = utcnow() - timedelta(hours=hours)
        async with self._lock:
            chat_ids = [c.id for c in self._chats.values() if c.user_id == user_id]
            return sum(
                1
                for chat_id in chat_ids
                for message in self._messages.get(chat_id, [])
                if message.role == "user" and message.created_at >= since
            )
