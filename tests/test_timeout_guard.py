"""Unit tests for the stage timeout guard (backend/pipeline/timeout_guard.py)."""

import asyncio

import pytest

from backend.pipeline.agents import ANALYST, CONSOLIDATOR
from backend.pipeline.models import StageOutcome
from backend.pipeline.timeout_guard import (
    StageTimeoutGuard,
    failure_placeholder,
    timeout_placeholder,
)
from backend.providers.base import ModelResponse


def system_prompt_for(agent) -> str:
    return f"{agent.system_prompt}\n\ncontext"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_returns_model_text_on_success(make_model_client):
    client = make_model_client(responses={"analyst": "Decomposição do problema."})
    guard = StageTimeoutGuard(client, deadline=1.0, temperature=0.2)

    result = await guard.execute(ANALYST, system_prompt_for(ANALYST), "Pergunta")

    assert result.outcome is StageOutcome.OK
    assert result.text == "Decomposição do problema."
    assert result.stage_id == "analyst"
    assert not result.degraded
    assert client.calls[0]["temperature"] == 0.2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_timeout_returns_placeholder_and_cancels_call(make_model_client):
    client = make_model_client(delays={"analyst": 5.0})
    guard = StageTimeoutGuard(client, deadline=0.05)

    result = await guard.execute(ANALYST, system_prompt_for(ANALYST), "Pergunta")

    assert result.outcome is StageOutcome.TIMED_OUT
    assert result.text == timeout_placeholder(ANALYST)
    assert "Analista" in result.text

    await asyncio.sleep(0.01)
    assert client.cancelled == ["analyst"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_per_call_deadline_overrides_default(make_model_client):
    client = make_model_client(delays={"analyst": 0.2})
    guard = StageTimeoutGuard(client, deadline=0.01)

    result = await guard.execute(
        ANALYST, system_prompt_for(ANALYST), "Pergunta", deadline=1.0
    )

    assert result.outcome is StageOutcome.OK


@pytest.mark.unit
@pytest.mark.asyncio
async def test_model_error_becomes_failed_result(make_model_client):
    client = make_model_client(errors={"analyst": ConnectionError("network down")})
    guard = StageTimeoutGuard(client, deadline=1.0)

    result = await guard.execute(ANALYST, system_prompt_for(ANALYST), "Pergunta")

    assert result.outcome is StageOutcome.FAILED
    assert result.text == failure_placeholder(ANALYST)
    assert result.degraded


@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_model_answer_is_failed(make_model_client):
    client = make_model_client(responses={"analyst": "   "})
    guard = StageTimeoutGuard(client, deadline=1.0)

    result = await guard.execute(ANALYST, system_prompt_for(ANALYST), "Pergunta")

    assert result.outcome is StageOutcome.FAILED


@pytest.mark.unit
@pytest.mark.asyncio
async def test_toolset_only_reaches_tool_eligible_stage(make_model_client):
    client = make_model_client()
    guard = StageTimeoutGuard(client, deadline=1.0)
    toolset = object()

    await guard.execute(ANALYST, system_prompt_for(ANALYST), "Pergunta", toolset=toolset)
    await guard.execute(
        CONSOLIDATOR, system_prompt_for(CONSOLIDATOR), "Pergunta", toolset=toolset
    )

    assert client.calls_for("analyst")[0]["toolset"] is None
    assert client.calls_for("consolidator")[0]["toolset"] is toolset


@pytest.mark.unit
@pytest.mark.asyncio
async def test_caller_cancellation_cancels_model_call(make_model_client):
    client = make_model_client(delays={"analyst": 5.0})
    guard = StageTimeoutGuard(client, deadline=10.0)

    task = asyncio.create_task(
        guard.execute(ANALYST, system_prompt_for(ANALYST), "Pergunta")
    )
    await asyncio.sleep(0.02)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    await asyncio.sleep(0.01)
    assert client.cancelled == ["analyst"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_late_result_is_discarded():
    class SlowClient:
        def __init__(self):
            self.finished = False

        async def complete(self, system_prompt, user_content, toolset=None, temperature=None):
            try:
                await asyncio.sleep(0.1)
            except asyncio.CancelledError:
                # Ignore cancellation and answer late anyway
                await asyncio.sleep(0.05)
            self.finished = True
            return ModelResponse(content="late answer")

    client = SlowClient()
    guard = StageTimeoutGuard(client, deadline=0.01)

    result = await guard.execute(ANALYST, system_prompt_for(ANALYST), "Pergunta")
    await asyncio.sleep(0.1)

    assert client.finished
    assert result.outcome is StageOutcome.TIMED_OUT
    assert "late answer" not in result.text
