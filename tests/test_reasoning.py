"""Tests for reasoning-block helpers and environment parsing."""

import pytest

from backend.config import get_float, get_port
from backend.models import ChatMessage
from backend.pipeline.reasoning import extract_reasoning, has_reasoning, strip_reasoning


STORED = "<thinking>\nAnalista: passo 1\n</thinking>\n\nResposta final"


@pytest.mark.unit
def test_extract_reasoning():
    assert extract_reasoning(STORED) == "Analista: passo 1"
    assert extract_reasoning("<think>a</think> x <thinking>b</thinking>") == "a\n\nb"
    assert extract_reasoning("Sem raciocínio") is None
    assert extract_reasoning("") is None


@pytest.mark.unit
def test_strip_reasoning():
    assert strip_reasoning(STORED) == "Resposta final"
    assert strip_reasoning("Só texto") == "Só texto"


@pytest.mark.unit
def test_mismatched_tags_are_not_reasoning():
    assert extract_reasoning("<thinking>a</think>") is None


@pytest.mark.unit
def test_has_reasoning_only_for_assistant():
    assert has_reasoning(ChatMessage(chat_id="c", role="assistant", content=STORED))
    assert not has_reasoning(ChatMessage(chat_id="c", role="user", content=STORED))
    assert not has_reasoning(ChatMessage(chat_id="c", role="assistant", content="x"))


@pytest.mark.unit
def test_env_parsing_falls_back_on_garbage(monkeypatch):
    monkeypatch.setenv("STAGE_TIMEOUT_SECONDS", "soon")
    monkeypatch.setenv("PORT_BACKEND", "eighty")

    assert get_float("STAGE_TIMEOUT_SECONDS", 20.0) == 20.0
    assert get_port("PORT_BACKEND", 8200) == 8200

    monkeypatch.setenv("STAGE_TIMEOUT_SECONDS", "2.5")
    assert get_float("STAGE_TIMEOUT_SECONDS", 20.0) == 2.5
