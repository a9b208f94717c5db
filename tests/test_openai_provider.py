"""Tests for the OpenAI-compatible provider and its tool loop (backend/providers/openai_chat.py)."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from backend.providers.base import ProviderConfig
from backend.providers.openai_chat import OpenAIChatProvider
from backend.tools.default import DefaultToolset


def completion(content=None, tool_calls=None, model="gpt-test"):
    return SimpleNamespace(
        model=model,
        choices=[SimpleNamespace(message=SimpleNamespace(content=content, tool_calls=tool_calls))],
        usage=SimpleNamespace(prompt_tokens=10, completion_tokens=5, total_tokens=15),
    )


def tool_call(call_id, name, arguments):
    return SimpleNamespace(
        id=call_id,
        function=SimpleNamespace(name=name, arguments=json.dumps(arguments)),
    )


def make_provider(responses, max_tool_steps=5):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=responses)
    provider = OpenAIChatProvider(
        ProviderConfig(provider_id="openai", api_key="sk-test", max_tool_steps=max_tool_steps),
        model="gpt-test",
        client=client,
    )
    return provider, client.chat.completions.create


@pytest.mark.unit
@pytest.mark.asyncio
async def test_plain_completion():
    provider, create = make_provider([completion("Olá")])

    response = await provider.complete("system", "user", temperature=0.2)

    assert response.content == "Olá"
    assert response.total_tokens == 15
    kwargs = create.call_args.kwargs
    assert kwargs["temperature"] == 0.2
    assert "tools" not in kwargs
    assert kwargs["messages"][0] == {"role": "system", "content": "system"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_tool_loop_feeds_results_back(model_client):
    toolset = DefaultToolset(model_client)
    provider, create = make_provider([
        completion(tool_calls=[tool_call("call-1", "createDocument", {"title": "Plano"})]),
        completion("Documento criado."),
    ])

    response = await provider.complete("system", "user", toolset=toolset)

    assert response.content == "Documento criado."
    assert response.tool_calls == 1
    assert response.total_tokens == 30
    assert len(toolset.documents) == 1

    first_kwargs = create.call_args_list[0].kwargs
    assert [t["function"]["name"] for t in first_kwargs["tools"]][0] == "createDocument"

    second_messages = create.call_args_list[1].kwargs["messages"]
    assert second_messages[2]["tool_calls"][0]["id"] == "call-1"
    assert second_messages[3]["role"] == "tool"
    assert json.loads(second_messages[3]["content"])["title"] == "Plano"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_bad_tool_arguments_become_error_result(model_client):
    toolset = DefaultToolset(model_client)
    provider, create = make_provider([
        completion(tool_calls=[tool_call("call-1", "getWeather", {"latitude": "x"})]),
        completion("Não consegui obter o clima."),
    ])

    response = await provider.complete("system", "user", toolset=toolset)

    assert response.content == "Não consegui obter o clima."
    tool_message = create.call_args_list[1].kwargs["messages"][3]
    assert "error" in json.loads(tool_message["content"])


@pytest.mark.unit
@pytest.mark.asyncio
async def test_last_step_is_forced_to_answer(model_client):
    toolset = DefaultToolset(model_client)
    provider, create = make_provider(
        [
            completion(tool_calls=[tool_call("call-1", "requestSuggestions", {"document_id": "d"})]),
            completion("Resposta final"),
        ],
        max_tool_steps=2,
    )

    response = await provider.complete("system", "user", toolset=toolset)

    assert response.content == "Resposta final"
    assert "tools" not in create.call_args_list[1].kwargs


@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_choices_raise():
    provider, _ = make_provider([SimpleNamespace(model="gpt-test", choices=[], usage=None)])

    with pytest.raises(ValueError):
        await provider.complete("system", "user")


@pytest.mark.unit
def test_validate_key():
    provider = OpenAIChatProvider(ProviderConfig(provider_id="openai", api_key=""), client=MagicMock())

    assert provider.validate_key() is False
