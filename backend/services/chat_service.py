"""Chat service: quota, chat ownership and streamed responses."""

import logging
from typing import AsyncIterator, Optional, Tuple

from backend.config import (
    CHAT_MODEL_REASONING,
    ENTITLEMENTS_BY_USER_TYPE,
    TITLE_MODEL,
)
from backend.db.base import ChatStore
from backend.errors import (
    ChatAccessDenied,
    ChatNotFound,
    RateLimitExceeded,
    StreamNotFound,
)
from backend.models import Chat, PostChatRequest, RequestHints, SessionUser
from backend.pipeline.direct import DirectResponder
from backend.pipeline.executor import AgentPipelineExecutor
from backend.pipeline.prompts import title_prompt
from backend.providers.base import BaseLLMProvider
from backend.streaming.chunks import StreamChunk
from backend.streaming.relay import StreamRelay
from backend.tools.default import DefaultToolset

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 80


class ChatService:
    """
    Business logic behind the chat routes.

    Every incoming message is checked against the user's daily entitlement
    before anything else happens. New chats get a model-generated title. The
    response itself is produced by the StreamRelay, with the four-stage
    pipeline for the reasoning mode and a single direct call otherwise.
    """

    def __init__(
        self,
        chat_store: ChatStore,
        relay: StreamRelay,
        model_client: BaseLLMProvider,
        executor: AgentPipelineExecutor,
        direct: DirectResponder,
    ):
        self.chat_store = chat_store
        self.relay = relay
        self.model_client = model_client
        self.executor = executor
        self.direct = direct

    async def check_quota(self, user: SessionUser) -> None:
        """
        Raises:
            RateLimitExceeded: If the user sent too many messages in the last 24h
        """
        limit = ENTITLEMENTS_BY_USER_TYPE[user.type]["max_messages_per_day"]
        count = await self.chat_store.get_message_count_by_user_id(user.id, hours=24)
        if count > limit:
            raise RateLimitExceeded(user.id, limit, count)

    async def generate_title(self, content: str) -> str:
        """Short title for a new chat; falls back to the message prefix."""
        fallback = content.strip()[:MAX_TITLE_LENGTH]
        try:
            response = await self.model_client.complete(
                title_prompt(), content, model=TITLE_MODEL
            )
        except Exception as e:
            logger.warning(f"Title generation failed, using message prefix: {e}")
            return fallback

        title = response.content.strip().strip('"').strip()
        return title[:MAX_TITLE_LENGTH] or fallback

    async def get_owned_chat(self, chat_id: str, user: SessionUser) -> Chat:
        chat = await self.chat_store.get_chat(chat_id)
        if chat is None:
            raise ChatNotFound(f"Chat {chat_id} not found")
        if chat.user_id != user.id:
            raise ChatAccessDenied(f"Chat {chat_id} belongs to another user")
        return chat

    async def start_chat(
        self,
        request: PostChatRequest,
        user: SessionUser,
    ) -> Tuple[str, AsyncIterator[StreamChunk]]:
        """
        Persist the user's message and start streaming the response.

        Returns:
            (stream_id, reader) for the new stream

        Raises:
            RateLimitExceeded: Daily entitlement exhausted
            ChatAccessDenied: The chat belongs to another user
        """
        await self.check_quota(user)

        chat = await self.chat_store.get_chat(request.id)
        if chat is None:
            title = await self.generate_title(request.message.content)
            chat = Chat(
                id=request.id,
                user_id=user.id,
                title=title,
                visibility=request.selected_visibility_type,
            )
            await self.chat_store.save_chat(chat)
            logger.info(f"Created chat {chat.id}: \"{title}\"")
        elif chat.user_id != user.id:
            raise ChatAccessDenied(f"Chat {chat.id} belongs to another user")

        history = await self.chat_store.get_messages_by_chat_id(chat.id)
        user_message = request.to_message()
        await self.chat_store.save_messages([user_message])

        responder = (
            self.executor
            if request.selected_chat_model == CHAT_MODEL_REASONING
            else self.direct
        )

        return await self.relay.start(
            chat.id,
            history + [user_message],
            responder,
            request_hints=request.hints or RequestHints(),
            toolset_factory=lambda sink: DefaultToolset(self.model_client, sink=sink),
        )

    async def resume_stream(
        self, chat_id: str, user: SessionUser
    ) -> AsyncIterator[StreamChunk]:
        """
        Raises:
            ChatNotFound: Unknown chat
            ChatAccessDenied: Private chat of another user
            StreamNotFound: No stream was ever recorded for the chat
        """
        chat = await self.chat_store.get_chat(chat_id)
        if chat is None:
            raise ChatNotFound(f"Chat {chat_id} not found")
        if chat.visibility == "private" and chat.user_id != user.id:
            raise ChatAccessDenied(f"Chat {chat_id} is private")

        return await self.relay.resume(chat_id)

    async def cancel_stream(self, stream_id: str, user: SessionUser) -> None:
        """
        Raises:
            StreamNotFound: No live stream with that id
            ChatAccessDenied: The stream belongs to another user's chat
        """
        producer = await self.relay.registry.get(stream_id)
        if producer is None or producer.closed:
            raise StreamNotFound(f"No active stream {stream_id}")

        await self.get_owned_chat(producer.handle.conversation_id, user)
        await self.relay.cancel(stream_id)

    async def delete_chat(self, chat_id: str, user: SessionUser) -> Optional[Chat]:
        await self.get_owned_chat(chat_id, user)
        return await self.chat_store.delete_chat(chat_id)
