"""Formatting-aware chunk streams that survive client disconnects."""

from .chunks import ChunkKind, StreamChunk
from .formatter import StreamFormatter
from .registry import ResumableStreamRegistry, StreamHandle, StreamProducer, StreamState
from .relay import StreamRelay
from .stream_store import InMemoryStreamIdStore, RedisStreamIdStore, StreamIdStore

__all__ = [
    "ChunkKind",
    "StreamChunk",
    "StreamFormatter",
    "ResumableStreamRegistry",
    "StreamHandle",
    "StreamProducer",
    "StreamState",
    "StreamRelay",
    "StreamIdStore",
    "RedisStreamIdStore",
    "InMemoryStreamIdStore",
]
