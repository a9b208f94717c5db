"""Durable association between chats and the streams produced for them."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, List

from backend.config import STREAM_ID_TTL_SECONDS
from backend.redis_client import AsyncRedisClient

logger = logging.getLogger(__name__)


class StreamIdStore(ABC):
    """Records which stream ids belong to which chat, oldest first."""

    @abstractmethod
    async def create_stream_id(self, stream_id: str, chat_id: str) -> None:
        pass

    @abstractmethod
    async def get_stream_ids_by_chat_id(self, chat_id: str) -> List[str]:
        pass

    async def get_latest_stream_id(self, chat_id: str) -> str | None:
        stream_ids = await self.get_stream_ids_by_chat_id(chat_id)
        return stream_ids[-1] if stream_ids else None


class RedisStreamIdStore(StreamIdStore):
    """One Redis list per chat, refreshed TTL on every new stream."""

    KEY_TEMPLATE = "chat:{chat_id}:streams"

    def __init__(self, client: AsyncRedisClient, ttl: int = STREAM_ID_TTL_SECONDS):
        self.client = client
        self.ttl = ttl

    def _key(self, chat_id: str) -> str:
        return self.KEY_TEMPLATE.format(chat_id=chat_id)

    async def create_stream_id(self, stream_id: str, chat_id: str) -> None:
        stored = await self.client.rpush_with_ttl(self._key(chat_id), stream_id, ttl=self.ttl)
        if not stored:
            logger.warning(f"Stream {stream_id} for chat {chat_id} not recorded; resume unavailable")

    async def get_stream_ids_by_chat_id(self, chat_id: str) -> List[str]:
        return await self.client.lrange(self._key(chat_id))


class InMemoryStreamIdStore(StreamIdStore):
    """Process-local store for development and tests."""

    def __init__(self):
        self._streams: Dict[str, List[str]] = {}
        self._lock = asyncio.Lock()

    async def create_stream_id(self, stream_id: str, chat_id: str) -> None:
        async with self._lock:
            self._streams.setdefault(chat_id, []).append(stream_id)

    async def get_stream_ids_by_chat_id(self, chat_id: str) -> List[str]:
        async with self._lock:
            return list(self._streams.get(chat_id, []))
