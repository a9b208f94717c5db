"""Helpers for reasoning blocks embedded in persisted assistant messages."""

import re
from typing import Optional

from backend.models import ChatMessage

_REASONING_RE = re.compile(r"<(thinking|think)>([\s\S]*?)</\1>")


def extract_reasoning(content: str) -> Optional[str]:
    """Text inside <thinking>/<think> blocks joined by blank lines, or None."""
    matches = [match.group(2).strip() for match in _REASONING_RE.finditer(content or "")]
    if not matches:
        return None
    return "\n\n".join(matches)


def strip_reasoning(content: str) -> str:
    """The visible answer with reasoning blocks removed."""
    return _REASONING_RE.sub("", content or "").strip()


def has_reasoning(message: ChatMessage) -> bool:
    return message.role == "assistant" and extract_reasoning(message.content) is not None
