"""FastAPI dependency injection utilities.

Process-scoped objects (the stream registry, the model client, the
in-memory stores) are created lazily on first use and live for the rest of
the process. Route handlers receive them through ``Depends`` so tests can
swap any of them with ``app.dependency_overrides``.
"""

import logging
from typing import Optional
from fastapi import Depends

from backend.config import (
    LLM_API_KEY,
    LLM_BASE_URL,
    LLM_MAX_TOOL_STEPS,
    LLM_TEMPERATURE,
    STAGE_TIMEOUT_SECONDS,
    STORAGE_BACKEND,
)
from backend.db.base import ChatStore
from backend.db.chat_db import PostgresChatStore
from backend.db.memory import InMemoryChatStore
from backend.pipeline.direct import DirectResponder
from backend.pipeline.executor import AgentPipelineExecutor
from backend.pipeline.timeout_guard import StageTimeoutGuard
from backend.providers.base import BaseLLMProvider, ProviderConfig
from backend.providers.openai_chat import OpenAIChatProvider
from backend.redis_client import AsyncRedisClient, get_redis_pool, redis_pool_ready
from backend.services.chat_service import ChatService
from backend.streaming.registry import ResumableStreamRegistry
from backend.streaming.relay import StreamRelay
from backend.streaming.stream_store import (
    InMemoryStreamIdStore,
    RedisStreamIdStore,
    StreamIdStore,
)

logger = logging.getLogger(__name__)

_registry: Optional[ResumableStreamRegistry] = None
_model_client: Optional[BaseLLMProvider] = None
_memory_chat_store: Optional[InMemoryChatStore] = None
_memory_stream_store: Optional[InMemoryStreamIdStore] = None


def get_stream_registry() -> ResumableStreamRegistry:
    """Process-wide stream registry, created on first use."""
    global _registry
    if _registry is None:
        _registry = ResumableStreamRegistry()
        logger.info("Stream registry initialized")
    return _registry


def get_model_client() -> BaseLLMProvider:
    """Shared OpenAI-compatible model client."""
    global _model_client
    if _model_client is None:
        _model_client = OpenAIChatProvider(
            ProviderConfig(
                provider_id="openai",
                api_key=LLM_API_KEY,
                base_url=LLM_BASE_URL,
                max_tool_steps=LLM_MAX_TOOL_STEPS,
            )
        )
    return _model_client


def get_chat_store() -> ChatStore:
    """PostgreSQL store by default; STORAGE_BACKEND=memory for a process-local one."""
    global _memory_chat_store
    if STORAGE_BACKEND == "postgres":
        return PostgresChatStore()

    if _memory_chat_store is None:
        _memory_chat_store = InMemoryChatStore()
    return _memory_chat_store


def resumable_streams_enabled() -> bool:
    """Resume needs stream ids that outlive a reconnect, i.e. Redis."""
    return redis_pool_ready()


def get_stream_store() -> StreamIdStore:
    global _memory_stream_store
    if redis_pool_ready():
        return RedisStreamIdStore(AsyncRedisClient(get_redis_pool()))

    if _memory_stream_store is None:
        _memory_stream_store = InMemoryStreamIdStore()
    return _memory_stream_store


def get_chat_service(
    chat_store: ChatStore = Depends(get_chat_store),
    stream_store: StreamIdStore = Depends(get_stream_store),
    registry: ResumableStreamRegistry = Depends(get_stream_registry),
    model_client: BaseLLMProvider = Depends(get_model_client),
) -> ChatService:
    """ChatService wired to the configured collaborators."""
    guard = StageTimeoutGuard(
        model_client, deadline=STAGE_TIMEOUT_SECONDS, temperature=LLM_TEMPERATURE
    )
    return ChatService(
        chat_store=chat_store,
        relay=StreamRelay(registry, stream_store, chat_store),
        model_client=model_client,
        executor=AgentPipelineExecutor(model_client, guard=guard),
        direct=DirectResponder(guard),
    )
