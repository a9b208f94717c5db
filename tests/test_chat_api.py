"""HTTP boundary tests for the chat API (backend/api/chat.py)."""

import json

import pytest
from fastapi.testclient import TestClient

from backend.auth import get_current_user
from backend.db.memory import InMemoryChatStore
from backend.dependencies import get_chat_service, resumable_streams_enabled
from backend.main import app
from backend.models import Chat, ChatMessage, SessionUser
from backend.pipeline.direct import DirectResponder
from backend.pipeline.executor import AgentPipelineExecutor
from backend.pipeline.timeout_guard import StageTimeoutGuard
from backend.services.chat_service import ChatService
from backend.streaming.formatter import StreamFormatter
from backend.streaming.registry import ResumableStreamRegistry
from backend.streaming.relay import StreamRelay
from backend.streaming.stream_store import InMemoryStreamIdStore
from tests.conftest import FakeModelClient

HEADERS = {"X-API-Key": "test-key", "X-User-Id": "user-1"}


def parse_sse(body: str):
    return [
        json.loads(line[len("data: "):])
        for line in body.split("\n\n")
        if line.startswith("data: ")
    ]


def chat_body(content="Vai chover hoje?", mode="chat-model-reasoning", chat_id="chat-1"):
    return {
        "id": chat_id,
        "message": {"id": "msg-1", "content": content},
        "selected_chat_model": mode,
        "selected_visibility_type": "private",
    }


@pytest.fixture
def chat_store():
    return InMemoryChatStore()


@pytest.fixture
def client(monkeypatch, chat_store):
    monkeypatch.setenv("API_KEYS", "test-key,other-key")
    monkeypatch.setattr("backend.main.STORAGE_BACKEND", "memory")
    monkeypatch.setattr("backend.main.is_redis_configured", lambda: False)
    monkeypatch.setattr("backend.api.health.STORAGE_BACKEND", "memory")

    model_client = FakeModelClient(responses={"consolidator": "Sim, **leve** chuva."})
    guard = StageTimeoutGuard(model_client, deadline=1.0)
    relay = StreamRelay(
        ResumableStreamRegistry(),
        InMemoryStreamIdStore(),
        chat_store,
        formatter=StreamFormatter(word_delay=0, marker_delay=0),
    )
    service = ChatService(
        chat_store=chat_store,
        relay=relay,
        model_client=model_client,
        executor=AgentPipelineExecutor(model_client, guard=guard),
        direct=DirectResponder(guard),
    )

    app.dependency_overrides[get_chat_service] = lambda: service
    app.dependency_overrides[resumable_streams_enabled] = lambda: True
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.mark.integration
def test_post_chat_streams_sse(client, chat_store):
    response = client.post("/api/chat", json=chat_body(), headers=HEADERS)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["x-stream-id"]

    events = parse_sse(response.text)
    assert events[0]["kind"] == "control"
    assert events[0]["payload"]["type"] == "reasoning"
    assert events[-1] == {"kind": "control", "payload": {"type": "done"}}
    text = "".join(e["text"] for e in events if e["kind"] != "control")
    assert text == "Sim, **leve** chuva."


@pytest.mark.integration
def test_resume_after_completion_replays_message(client):
    client.post("/api/chat", json=chat_body(), headers=HEADERS)

    response = client.get("/api/chat/stream", params={"chatId": "chat-1"}, headers=HEADERS)

    assert response.status_code == 200
    events = parse_sse(response.text)
    assert len(events) == 1
    assert events[0]["payload"]["type"] == "append-message"
    assert events[0]["payload"]["message"]["role"] == "assistant"


@pytest.mark.unit
def test_resume_disabled_without_redis(client):
    app.dependency_overrides[resumable_streams_enabled] = lambda: False

    response = client.get("/api/chat/stream", params={"chatId": "chat-1"}, headers=HEADERS)

    assert response.status_code == 204


@pytest.mark.unit
def test_resume_requires_chat_id(client):
    response = client.get("/api/chat/stream", headers=HEADERS)

    assert response.status_code == 400


@pytest.mark.unit
def test_resume_unknown_chat_is_404(client):
    response = client.get("/api/chat/stream", params={"chatId": "nope"}, headers=HEADERS)

    assert response.status_code == 404


@pytest.mark.unit
def test_missing_api_key_is_401(client):
    response = client.post("/api/chat", json=chat_body(), headers={"X-User-Id": "user-1"})

    assert response.status_code == 401


@pytest.mark.unit
def test_missing_user_is_401(client):
    response = client.post("/api/chat", json=chat_body(), headers={"X-API-Key": "test-key"})

    assert response.status_code == 401


@pytest.mark.unit
def test_invalid_body_is_400(client):
    response = client.post("/api/chat", json={"id": "chat-1"}, headers=HEADERS)

    assert response.status_code == 400


@pytest.mark.unit
def test_message_too_long_is_400(client):
    response = client.post("/api/chat", json=chat_body(content="x" * 2001), headers=HEADERS)

    assert response.status_code == 400


@pytest.mark.unit
def test_quota_exceeded_is_429(client, chat_store):
    async def fill():
        await chat_store.save_chat(Chat(id="old", user_id="guest-1", title="t"))
        await chat_store.save_messages([
            ChatMessage(chat_id="old", role="user", content=str(i)) for i in range(21)
        ])

    client.portal.call(fill)

    response = client.post(
        "/api/chat",
        json=chat_body(),
        headers={"X-API-Key": "test-key", "X-User-Id": "guest-1", "X-User-Type": "guest"},
    )

    assert response.status_code == 429


@pytest.mark.unit
def test_foreign_chat_is_403(client, chat_store):
    client.portal.call(chat_store.save_chat, Chat(id="chat-1", user_id="someone-else", title="t"))

    response = client.post("/api/chat", json=chat_body(), headers=HEADERS)

    assert response.status_code == 403


@pytest.mark.unit
def test_cancel_unknown_stream_is_404(client):
    response = client.delete("/api/chat/stream/missing", headers=HEADERS)

    assert response.status_code == 404


@pytest.mark.unit
def test_delete_chat(client):
    client.post("/api/chat", json=chat_body(mode="chat-model"), headers=HEADERS)

    response = client.delete("/api/chat", params={"id": "chat-1"}, headers=HEADERS)
    assert response.status_code == 200
    assert response.json()["id"] == "chat-1"

    response = client.delete("/api/chat", params={"id": "chat-1"}, headers=HEADERS)
    assert response.status_code == 404


@pytest.mark.unit
def test_session_user_override(client):
    app.dependency_overrides[get_current_user] = lambda: SessionUser(id="user-1")

    response = client.post("/api/chat", json=chat_body(mode="chat-model"), headers={})

    assert response.status_code == 200


@pytest.mark.unit
def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == {"status": "memory"}
    assert body["resumable_streams"] is False
