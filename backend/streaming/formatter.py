"""Formatting-aware chunking of a finished answer into a paced stream."""

import asyncio
import re
from typing import AsyncIterator, Awaitable, Callable, Iterator, List, Tuple

from backend.config import MARKER_DELAY_SECONDS, WORD_DELAY_SECONDS
from .chunks import ChunkKind, StreamChunk

# Priority order matters: "```" must be taken before "`", "**" before "*"
MARKERS: Tuple[str, ...] = (
    "```",
    "`",
    "#",
    "##",
    "###",
    "####",
    "#####",
    "**",
    "__",
    "*",
    "_",
    "\n",
    "- ",
    "1. ",
    "> ",
)

_WHITESPACE_RE = re.compile(r"(\s+)")

# (is_marker, text)
Piece = Tuple[bool, str]


def split_markers(text: str, markers: Tuple[str, ...] = MARKERS) -> List[Piece]:
    """
    Partition text into marker pieces and plain spans.

    Each marker in turn splits every remaining plain span; marker pieces are
    never split again. Empty spans are dropped, so joining the pieces gives
    back the input exactly.
    """
    pieces: List[Piece] = [(False, text)] if text else []

    for marker in markers:
        next_pieces: List[Piece] = []
        for is_marker, value in pieces:
            if is_marker:
                next_pieces.append((is_marker, value))
                continue
            parts = value.split(marker)
            for index, part in enumerate(parts):
                if index > 0:
                    next_pieces.append((True, marker))
                if part:
                    next_pieces.append((False, part))
        pieces = next_pieces

    return pieces


def split_words(span: str) -> List[str]:
    """Split on whitespace, keeping each whitespace run as its own unit."""
    return [unit for unit in _WHITESPACE_RE.split(span) if unit]


class StreamFormatter:
    """
    Converts a fixed text into an ordered sequence of StreamChunks.

    Markers go out as ``marker`` chunks with a minimal pause; plain spans go
    out word by word as ``word`` chunks, pausing after every non-whitespace
    word. Concatenating the chunk texts reproduces the input exactly.
    """

    def __init__(
        self,
        word_delay: float = WORD_DELAY_SECONDS,
        marker_delay: float = MARKER_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.word_delay = word_delay
        self.marker_delay = marker_delay
        self._sleep = sleep

    def chunks(self, text: str) -> Iterator[StreamChunk]:
        """The chunk sequence without pacing."""
        for is_marker, value in split_markers(text):
            if is_marker:
                yield StreamChunk.marker(value)
            else:
                for unit in split_words(value):
                    yield StreamChunk.word(unit)

    async def format(self, text: str) -> AsyncIterator[StreamChunk]:
        """Paced, single-pass chunk stream for ``text``."""
        for chunk in self.chunks(text):
            yield chunk
            if chunk.kind is ChunkKind.MARKER:
                await self._sleep(self.marker_delay)
            elif chunk.text.strip():
                await self._sleep(self.word_delay)
