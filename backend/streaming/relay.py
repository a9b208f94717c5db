"""Start, resume and cancel streamed pipeline responses."""

import asyncio
import logging
from datetime import datetime
from typing import AsyncIterator, Callable, List, Optional, Tuple, Union

from backend.config import RESUME_GRACE_SECONDS
from backend.db.base import ChatStore
from backend.errors import DeliveryFailure, PreconditionViolation, StreamNotFound
from backend.models import (
    ChatMessage,
    RequestHints,
    generate_uuid,
    message_to_payload,
    utcnow,
)
from backend.pipeline.direct import DirectResponder
from backend.pipeline.executor import AgentPipelineExecutor, create_assistant_content
from backend.pipeline.models import PipelineRun
from backend.tools.base import ConsolidatorToolset
from backend.tools.default import EventSink
from .chunks import (
    APPEND_MESSAGE,
    GENERIC_ERROR_MESSAGE,
    REASONING,
    StreamChunk,
    done_chunk,
    error_chunk,
)
from .formatter import StreamFormatter
from .registry import ResumableStreamRegistry, StreamProducer, StreamState
from .stream_store import StreamIdStore

logger = logging.getLogger(__name__)

Responder = Union[AgentPipelineExecutor, DirectResponder]
ToolsetFactory = Callable[[EventSink], ConsolidatorToolset]


class StreamRelay:
    """
    Boundary between callers and streamed pipeline runs.

    ``start`` records the stream id for the chat before any stage runs, then
    produces chunks from a background task. ``resume`` attaches to a live
    stream or, shortly after completion, replays the persisted assistant
    message as one ``append-message`` control chunk. ``cancel`` abandons a
    live stream.
    """

    def __init__(
        self,
        registry: ResumableStreamRegistry,
        stream_store: StreamIdStore,
        chat_store: ChatStore,
        formatter: Optional[StreamFormatter] = None,
        grace_seconds: float = RESUME_GRACE_SECONDS,
    ):
        self.registry = registry
        self.stream_store = stream_store
        self.chat_store = chat_store
        self.formatter = formatter or StreamFormatter()
        self.grace_seconds = grace_seconds

    async def start(
        self,
        chat_id: str,
        messages: List[ChatMessage],
        responder: Responder,
        request_hints: Optional[RequestHints] = None,
        toolset_factory: Optional[ToolsetFactory] = None,
    ) -> Tuple[str, AsyncIterator[StreamChunk]]:
        """
        Launch a run and return its stream id with a reader positioned at the start.

        Raises:
            StreamAlreadyActive: If the generated id is somehow already live
        """
        stream_id = generate_uuid()

        # The producer must be live before the id is published, so a resume
        # that finds the id always finds the stream.
        producer = await self.registry.register(stream_id, chat_id)
        reader = producer.attach()

        try:
            await self.stream_store.create_stream_id(stream_id, chat_id)
        except Exception:
            await self.registry.finish(stream_id, StreamState.ABANDONED)
            raise

        producer.task = asyncio.create_task(
            self._produce(producer, chat_id, messages, responder, request_hints, toolset_factory),
            name=f"stream-{stream_id}",
        )
        return stream_id, reader

    async def _produce(
        self,
        producer: StreamProducer,
        chat_id: str,
        messages: List[ChatMessage],
        responder: Responder,
        request_hints: Optional[RequestHints],
        toolset_factory: Optional[ToolsetFactory],
    ) -> None:
        stream_id = producer.stream_id

        async def sink(type_: str, data: dict) -> None:
            await producer.write(StreamChunk.control(type_, **data))

        try:
            toolset = toolset_factory(sink) if toolset_factory else None
            run = await responder.run(
                messages, request_hints, toolset, request_id=stream_id
            )
            await self._deliver(producer, run)

            await self.chat_store.save_messages([
                ChatMessage(
                    chat_id=chat_id,
                    role="assistant",
                    content=create_assistant_content(run),
                )
            ])

            await producer.write(done_chunk())
            await self.registry.finish(stream_id, StreamState.COMPLETED)

        except asyncio.CancelledError:
            logger.warning(f"Stream {stream_id} cancelled")
            await self._abandon(producer)
            raise

        except PreconditionViolation as e:
            logger.warning(f"Stream {stream_id} rejected: {e}")
            await self._abandon(producer, str(e))

        except Exception as e:
            logger.error(f"✗ Stream {stream_id} failed: {e}", exc_info=True)
            await self._abandon(producer)

    async def _deliver(self, producer: StreamProducer, run: PipelineRun) -> None:
        try:
            if run.reasoning_trace:
                await producer.write(StreamChunk.control(REASONING, text=run.reasoning_trace))
            async for chunk in self.formatter.format(run.final_answer):
                await producer.write(chunk)
        except DeliveryFailure:
            raise
        except Exception as e:
            raise DeliveryFailure(
                f"Formatting failed for stream {producer.stream_id}: {e}",
                stream_id=producer.stream_id,
            ) from e

    async def _abandon(
        self, producer: StreamProducer, message: str = GENERIC_ERROR_MESSAGE
    ) -> None:
        if not producer.closed:
            await producer.write(error_chunk(message))
        await self.registry.finish(producer.stream_id, StreamState.ABANDONED)

    async def resume(
        self, chat_id: str, now: Optional[datetime] = None
    ) -> AsyncIterator[StreamChunk]:
        """
        Reader for the chat's most recent stream.

        Raises:
            StreamNotFound: If no stream was ever recorded for the chat
        """
        stream_id = await self.stream_store.get_latest_stream_id(chat_id)
        if stream_id is None:
            raise StreamNotFound(f"No streams recorded for chat {chat_id}")

        reader = await self.registry.attach(stream_id)
        if reader is not None:
            logger.info(f"Resuming live stream {stream_id} for chat {chat_id}")
            return reader

        return self._reconcile(chat_id, now or utcnow())

    async def _reconcile(self, chat_id: str, now: datetime) -> AsyncIterator[StreamChunk]:
        messages = await self.chat_store.get_messages_by_chat_id(chat_id)
        if not messages:
            return

        latest = messages[-1]
        if latest.role != "assistant":
            return

        age = (now - latest.created_at).total_seconds()
        if age > self.grace_seconds:
            return

        logger.info(f"Replaying message {latest.id} for chat {chat_id} ({age:.1f}s old)")
        yield StreamChunk.control(APPEND_MESSAGE, message=message_to_payload(latest))

    async def cancel(self, stream_id: str) -> None:
        """
        Abandon a live stream, cancelling its in-flight model call.

        Raises:
            StreamNotFound: If there is no live producer for the id
        """
        producer = await self.registry.get(stream_id)
        if producer is None or producer.closed:
            raise StreamNotFound(f"No active stream {stream_id}")

        if producer.task is not None and not producer.task.done():
            producer.task.cancel()
            await asyncio.wait({producer.task})

        # A task cancelled before it started never ran its own cleanup
        if not producer.closed:
            await self._abandon(producer)
        logger.info(f"Stream {stream_id} cancelled by request")
