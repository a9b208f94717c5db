"""Pytest configuration and shared fixtures for Swarm Chat tests.

This module provides:
- Basic pytest configuration (markers)
- A scriptable fake model client that recognizes which agent is calling
- In-memory stores and a relay wired without pacing delays
"""

import asyncio
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add project root to Python path to allow imports from backend
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from backend.db.memory import InMemoryChatStore  # noqa: E402
from backend.models import ChatMessage  # noqa: E402
from backend.pipeline.agents import AGENTS  # noqa: E402
from backend.pipeline.direct import ASSISTANT  # noqa: E402
from backend.pipeline.executor import AgentPipelineExecutor  # noqa: E402
from backend.pipeline.timeout_guard import StageTimeoutGuard  # noqa: E402
from backend.providers.base import BaseLLMProvider, ModelResponse, ProviderConfig  # noqa: E402
from backend.streaming.formatter import StreamFormatter  # noqa: E402
from backend.streaming.registry import ResumableStreamRegistry  # noqa: E402
from backend.streaming.relay import StreamRelay  # noqa: E402
from backend.streaming.stream_store import InMemoryStreamIdStore  # noqa: E402


# ==================== Pytest Configuration ====================

def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers",
        "unit: mark test as a unit test (fast, isolated)"
    )
    config.addinivalue_line(
        "markers",
        "integration: mark test as an integration test (slower, multiple components)"
    )
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take several seconds)"
    )


# ==================== Environment Fixtures ====================

@pytest.fixture(scope="function", autouse=True)
def isolate_environment(monkeypatch):
    """Prevent environment variable pollution between tests."""
    original_env = os.environ.copy()

    yield

    os.environ.clear()
    os.environ.update(original_env)


# ==================== Fake Model Client ====================

def identify_agent(system_prompt: str) -> str:
    """Agent id whose profile prompt opens the system prompt."""
    for agent in list(AGENTS) + [ASSISTANT]:
        if system_prompt.startswith(agent.system_prompt):
            return agent.id
    return "other"


class FakeModelClient(BaseLLMProvider):
    """
    Scriptable model client.

    Per agent id it can return a fixed text, sleep before answering, or
    raise. Every call is recorded; calls that get cancelled are listed in
    ``cancelled``.
    """

    def __init__(
        self,
        responses: Optional[Dict[str, str]] = None,
        delays: Optional[Dict[str, float]] = None,
        errors: Optional[Dict[str, Exception]] = None,
    ):
        super().__init__(ProviderConfig(provider_id="fake", api_key="test-key"))
        self.responses = responses or {}
        self.delays = delays or {}
        self.errors = errors or {}
        self.calls: List[Dict[str, Any]] = []
        self.cancelled: List[str] = []

    async def complete(
        self,
        system_prompt: str,
        user_content: str,
        toolset=None,
        temperature=None,
        model=None,
    ) -> ModelResponse:
        agent_id = identify_agent(system_prompt)
        self.calls.append({
            "agent_id": agent_id,
            "system_prompt": system_prompt,
            "user_content": user_content,
            "toolset": toolset,
            "temperature": temperature,
            "model": model,
        })

        try:
            if agent_id in self.delays:
                await asyncio.sleep(self.delays[agent_id])
        except asyncio.CancelledError:
            self.cancelled.append(agent_id)
            raise

        if agent_id in self.errors:
            raise self.errors[agent_id]

        return ModelResponse(
            content=self.responses.get(agent_id, f"Resposta do agente {agent_id}."),
            model="fake-model",
        )

    def calls_for(self, agent_id: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["agent_id"] == agent_id]


@pytest.fixture
def model_client() -> FakeModelClient:
    return FakeModelClient()


@pytest.fixture
def make_model_client():
    """Factory for FakeModelClient with scripted responses/delays/errors."""
    return FakeModelClient


# ==================== Pipeline and Streaming Fixtures ====================

@pytest.fixture
def user_messages() -> List[ChatMessage]:
    return [ChatMessage(chat_id="chat-1", role="user", content="What is the weather?")]


@pytest.fixture
def chat_store() -> InMemoryChatStore:
    return InMemoryChatStore()


@pytest.fixture
def stream_store() -> InMemoryStreamIdStore:
    return InMemoryStreamIdStore()


@pytest.fixture
def registry() -> ResumableStreamRegistry:
    return ResumableStreamRegistry()


@pytest.fixture
def relay(registry, stream_store, chat_store) -> StreamRelay:
    """Relay with an unpaced formatter."""
    return StreamRelay(
        registry,
        stream_store,
        chat_store,
        formatter=StreamFormatter(word_delay=0, marker_delay=0),
    )


@pytest.fixture
def make_executor():
    def _make(client: BaseLLMProvider, deadline: float = 1.0) -> AgentPipelineExecutor:
        return AgentPipelineExecutor(client, guard=StageTimeoutGuard(client, deadline=deadline))
    return _make
