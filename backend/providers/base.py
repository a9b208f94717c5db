"""Base abstract class for LLM providers."""

from abc import ABC, abstractmethod
from typing import Optional, TYPE_CHECKING
from dataclasses import dataclass

if TYPE_CHECKING:
    from backend.tools.base import ConsolidatorToolset


@dataclass
class ProviderConfig:
    """Configuration for a provider."""

    provider_id: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout: float = 120.0
    max_retries: int = 3
    max_tool_steps: int = 5
    enabled: bool = True


@dataclass
class ModelResponse:
    """Response from an LLM model."""

    content: str
    model: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    tool_calls: int = 0


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers.

    The pipeline only needs one capability from a provider: turn a system
    prompt plus user content into text, optionally letting the model call
    tools along the way.
    """

    def __init__(self, config: ProviderConfig):
        self.config = config

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_content: str,
        toolset: Optional["ConsolidatorToolset"] = None,
        temperature: Optional[float] = None,
        model: Optional[str] = None,
    ) -> ModelResponse:
        """
        Run a single completion.

        Args:
            system_prompt: System prompt for the call
            user_content: User turn content
            toolset: Tools the model may call (None disables tool calling)
            temperature: Sampling temperature
            model: Override of the provider's default model

        Returns:
            ModelResponse with the final text and usage metadata
        """
        pass

    def validate_key(self) -> bool:
        """
        Validate that the API key is configured.

        Returns:
            True if valid, False otherwise
        """
        return self.config.api_key is not None and len(self.config.api_key) > 0
