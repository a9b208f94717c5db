"""Chunk types delivered over a stream."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ChunkKind(str, Enum):
    MARKER = "marker"
    WORD = "word"
    CONTROL = "control"


@dataclass(frozen=True)
class StreamChunk:
    """
    One unit of an ordered stream.

    ``marker`` and ``word`` chunks carry text; ``control`` chunks carry a
    payload dict with a ``type`` key (reasoning, append-message, error, done,
    or a tool side-channel type).
    """

    kind: ChunkKind
    text: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def marker(cls, text: str) -> "StreamChunk":
        return cls(kind=ChunkKind.MARKER, text=text)

    @classmethod
    def word(cls, text: str) -> "StreamChunk":
        return cls(kind=ChunkKind.WORD, text=text)

    @classmethod
    def control(cls, type_: str, **values: Any) -> "StreamChunk":
        return cls(kind=ChunkKind.CONTROL, payload={"type": type_, **values})

    @property
    def control_type(self) -> Optional[str]:
        if self.kind is not ChunkKind.CONTROL:
            return None
        return self.payload.get("type")

    @property
    def is_terminal(self) -> bool:
        return self.control_type in TERMINAL_TYPES

    def to_dict(self) -> Dict[str, Any]:
        if self.kind is ChunkKind.CONTROL:
            return {"kind": self.kind.value, "payload": self.payload}
        return {"kind": self.kind.value, "text": self.text}

    def to_sse(self) -> str:
        """Server-Sent Events frame."""
        return f"data: {json.dumps(self.to_dict(), ensure_ascii=False)}\n\n"


# Control types
REASONING = "reasoning"
APPEND_MESSAGE = "append-message"
ERROR = "error"
DONE = "done"

TERMINAL_TYPES = frozenset({DONE, ERROR})

GENERIC_ERROR_MESSAGE = (
    "Desculpe, ocorreu um erro ao processar sua solicitação. "
    "Por favor, tente novamente."
)


def done_chunk() -> StreamChunk:
    return StreamChunk.control(DONE)


def error_chunk(message: str = GENERIC_ERROR_MESSAGE) -> StreamChunk:
    return StreamChunk.control(ERROR, message=message)
