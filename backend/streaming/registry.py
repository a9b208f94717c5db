"""Process-wide registry of live and recently finished streams."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import AsyncIterator, Callable, Dict, List, Optional

from backend.config import STREAM_RETENTION_SECONDS
from backend.errors import DeliveryFailure, StreamAlreadyActive
from backend.models import utcnow
from .chunks import StreamChunk

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


@dataclass
class StreamHandle:
    stream_id: str
    conversation_id: str
    created_at: datetime = field(default_factory=utcnow)
    state: StreamState = StreamState.ACTIVE
    finished_at: Optional[float] = None


class StreamProducer:
    """
    Append-only chunk log for one stream with fan-out to any number of readers.

    The single writer appends; every reader keeps its own cursor into the
    log, so a slow reader never holds up the writer and every reader sees
    chunks in emission order. A reader starts at the log position current
    when it attached.
    """

    def __init__(self, handle: StreamHandle, clock: Callable[[], float] = time.monotonic):
        self.handle = handle
        self._clock = clock
        self.task: Optional[asyncio.Task] = None
        self._chunks: List[StreamChunk] = []
        self._closed = False
        self._condition = asyncio.Condition()

    @property
    def stream_id(self) -> str:
        return self.handle.stream_id

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def emitted(self) -> int:
        return len(self._chunks)

    async def write(self, chunk: StreamChunk) -> None:
        async with self._condition:
            if self._closed:
                raise DeliveryFailure(
                    f"Write to closed stream {self.stream_id}", stream_id=self.stream_id
                )
            self._chunks.append(chunk)
            self._condition.notify_all()

    async def close(self, state: StreamState) -> None:
        """Mark the stream finished and wake every reader. Idempotent."""
        async with self._condition:
            if self._closed:
                return
            self._closed = True
            self.handle.state = state
            self.handle.finished_at = self._clock()
            self._condition.notify_all()

    def attach(self) -> AsyncIterator[StreamChunk]:
        """New reader positioned at the current end of the log."""
        return self._read_from(len(self._chunks))

    async def _read_from(self, cursor: int) -> AsyncIterator[StreamChunk]:
        while True:
            async with self._condition:
                await self._condition.wait_for(
                    lambda: cursor < len(self._chunks) or self._closed
                )
                batch = self._chunks[cursor:]
                cursor += len(batch)
                finished = self._closed and not batch
            if finished:
                return
            for chunk in batch:
                yield chunk


class ResumableStreamRegistry:
    """
    Map from stream id to producer.

    All map operations run under one lock, so at most one active producer
    can be registered per stream id even under concurrent registration.
    Finished producers stay visible for ``retention_seconds``. A timer drops
    each one when its retention ends, and every map access also evicts
    anything already expired.
    """

    def __init__(
        self,
        retention_seconds: float = STREAM_RETENTION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.retention_seconds = retention_seconds
        self._clock = clock
        self._producers: Dict[str, StreamProducer] = {}
        self._lock = asyncio.Lock()

    async def register(self, stream_id: str, conversation_id: str) -> StreamProducer:
        """
        Register the single writer for a stream id.

        Raises:
            StreamAlreadyActive: If an active producer already owns the id
        """
        async with self._lock:
            self._evict_expired()
            existing = self._producers.get(stream_id)
            if existing is not None and existing.handle.state is StreamState.ACTIVE:
                raise StreamAlreadyActive(stream_id)

            producer = StreamProducer(
                StreamHandle(stream_id=stream_id, conversation_id=conversation_id),
                clock=self._clock,
            )
            self._producers[stream_id] = producer
            logger.info(f"Registered stream {stream_id} for chat {conversation_id}")
            return producer

    async def get(self, stream_id: str) -> Optional[StreamProducer]:
        async with self._lock:
            self._evict_expired()
            return self._producers.get(stream_id)

    async def attach(self, stream_id: str) -> Optional[AsyncIterator[StreamChunk]]:
        """Reader for an active stream, or None if nothing more will be produced."""
        async with self._lock:
            self._evict_expired()
            producer = self._producers.get(stream_id)
            if producer is None or producer.closed:
                return None
            return producer.attach()

    async def finish(self, stream_id: str, state: StreamState) -> None:
        async with self._lock:
            producer = self._producers.get(stream_id)
        if producer is not None:
            await producer.close(state)
            logger.info(f"Stream {stream_id} {state.value}")
            asyncio.get_running_loop().call_later(
                self.retention_seconds, self._discard, stream_id, producer
            )

    async def state(self, stream_id: str) -> Optional[StreamState]:
        producer = await self.get(stream_id)
        return producer.handle.state if producer is not None else None

    async def active_count(self) -> int:
        async with self._lock:
            return sum(
                1 for p in self._producers.values() if p.handle.state is StreamState.ACTIVE
            )

    def _discard(self, stream_id: str, producer: StreamProducer) -> None:
        if self._producers.get(stream_id) is producer:
            del self._producers[stream_id]
            logger.debug(f"Evicted stream {stream_id}")

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [
            stream_id
            for stream_id, producer in self._producers.items()
            if producer.handle.finished_at is not None
            and now - producer.handle.finished_at > self.retention_seconds
        ]
        for stream_id in expired:
            del self._producers[stream_id]
