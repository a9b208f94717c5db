"""OpenAI-compatible chat provider using the OpenAI SDK."""

import json
import logging
from typing import Any, Dict, List, Optional, cast

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletionMessageParam
from pydantic import ValidationError

from .base import BaseLLMProvider, ProviderConfig, ModelResponse
from backend.config import LLM_MODEL, LLM_TEMPERATURE
from backend.tools.base import ConsolidatorToolset, UnknownToolError

logger = logging.getLogger(__name__)


class OpenAIChatProvider(BaseLLMProvider):
    """Chat completions against OpenAI or any OpenAI-compatible router.

    When a toolset is supplied the provider runs the tool-calling loop: tool
    calls requested by the model are dispatched to the toolset and their
    results fed back until the model answers in plain text or the step
    budget runs out.
    """

    def __init__(
        self,
        config: ProviderConfig,
        model: str = LLM_MODEL,
        client: Optional[AsyncOpenAI] = None,
    ):
        super().__init__(config)
        self.model = model
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        """SDK client, created on first call so routes without model calls need no key."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                max_retries=self.config.max_retries,
            )
        return self._client

    async def complete(
        self,
        system_prompt: str,
        user_content: str,
        toolset: Optional[ConsolidatorToolset] = None,
        temperature: Optional[float] = None,
        model: Optional[str] = None,
    ) -> ModelResponse:
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ]
        model_id = model or self.model
        tools = toolset.descriptors() if toolset is not None else None
        usage = {"prompt": 0, "completion": 0, "total": 0}
        tool_calls_made = 0

        for step in range(self.config.max_tool_steps):
            # The last round is forced to answer in text
            allow_tools = tools is not None and step < self.config.max_tool_steps - 1
            response = await self._create(
                model_id,
                messages,
                temperature,
                tools if allow_tools else None,
            )
            self._accumulate_usage(usage, response)

            if not response.choices:
                raise ValueError(f"Empty completion from model {model_id}")

            message = response.choices[0].message

            if allow_tools and message.tool_calls:
                messages.append(
                    {
                        "role": "assistant",
                        "content": message.content or "",
                        "tool_calls": [
                            {
                                "id": call.id,
                                "type": "function",
                                "function": {
                                    "name": call.function.name,
                                    "arguments": call.function.arguments,
                                },
                            }
                            for call in message.tool_calls
                        ],
                    }
                )
                for call in message.tool_calls:
                    result = await self._run_tool(
                        toolset, call.function.name, call.function.arguments
                    )
                    tool_calls_made += 1
                    messages.append(
                        {
                            "role": "tool",
                            "tool_call_id": call.id,
                            "content": json.dumps(result, ensure_ascii=False),
                        }
                    )
                continue

            return ModelResponse(
                content=message.content or "",
                model=response.model,
                prompt_tokens=usage["prompt"],
                completion_tokens=usage["completion"],
                total_tokens=usage["total"],
                tool_calls=tool_calls_made,
            )

        raise ValueError(
            f"Model {model_id} did not produce a text answer within "
            f"{self.config.max_tool_steps} steps"
        )

    async def _create(
        self,
        model_id: str,
        messages: List[Dict[str, Any]],
        temperature: Optional[float],
        tools: Optional[List[Dict[str, Any]]],
    ):
        kwargs: Dict[str, Any] = {
            "model": model_id,
            "messages": cast(List[ChatCompletionMessageParam], messages),
            "temperature": LLM_TEMPERATURE if temperature is None else temperature,
        }
        if tools:
            kwargs["tools"] = tools
        return await self.client.chat.completions.create(**kwargs)

    async def _run_tool(
        self, toolset: ConsolidatorToolset, name: str, raw_arguments: str
    ) -> Dict[str, Any]:
        """Invoke a tool and turn argument/lookup errors into a tool result."""
        try:
            arguments = json.loads(raw_arguments or "{}")
            return await toolset.invoke(name, arguments)
        except (json.JSONDecodeError, ValidationError, UnknownToolError) as e:
            logger.warning(f"Rejected tool call {name}: {e}")
            return {"error": f"Invalid call to {name}: {e}"}
        except Exception as e:
            logger.error(f"Tool {name} failed: {e}", exc_info=True)
            return {"error": f"Tool {name} failed"}

    @staticmethod
    def _accumulate_usage(usage: Dict[str, int], response) -> None:
        if response.usage is None:
            return
        usage["prompt"] += getattr(response.usage, "prompt_tokens", 0) or 0
        usage["completion"] += getattr(response.usage, "completion_tokens", 0) or 0
        usage["total"] += getattr(response.usage, "total_tokens", 0) or 0
