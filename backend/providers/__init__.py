"""LLM provider abstractions."""

from .base import BaseLLMProvider, ProviderConfig, ModelResponse
from .openai_chat import OpenAIChatProvider

__all__ = [
    "BaseLLMProvider",
    "ProviderConfig",
    "ModelResponse",
    "OpenAIChatProvider",
]
