"""Tests for the Consolidator toolset (backend/tools/)."""

import json

import httpx
import pytest
from pydantic import ValidationError

from backend.tools.base import TOOL_SPECS, UnknownToolError
from backend.tools.default import DefaultToolset, parse_suggestions


@pytest.fixture
def events():
    return []


@pytest.fixture
def sink(events):
    async def _sink(type_, data):
        events.append((type_, data))
    return _sink


@pytest.mark.unit
def test_descriptors_cover_exactly_the_four_tools(model_client):
    descriptors = DefaultToolset(model_client).descriptors()

    names = [d["function"]["name"] for d in descriptors]
    assert names == ["createDocument", "updateDocument", "requestSuggestions", "getWeather"]
    weather = descriptors[3]["function"]["parameters"]
    assert set(weather["required"]) == {"latitude", "longitude"}
    assert len(TOOL_SPECS) == 4


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_then_update_document(make_model_client, sink, events):
    client = make_model_client(responses={"other": "Rascunho"})
    toolset = DefaultToolset(client, sink=sink)

    created = await toolset.invoke("createDocument", {"title": "Receita", "kind": "text"})
    assert created["title"] == "Receita"
    assert created["content"] == "Rascunho"

    client.responses["other"] = "Versão revisada"
    updated = await toolset.invoke(
        "updateDocument", {"id": created["id"], "description": "Mais curto"}
    )

    assert updated["content"] == "Versão revisada"
    assert [type_ for type_, _ in events] == ["document", "document"]
    assert events[1][1]["content"] == "Versão revisada"
    assert client.calls[0]["user_content"] == "Receita"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_unknown_document_raises(model_client):
    toolset = DefaultToolset(model_client)

    with pytest.raises(KeyError):
        await toolset.invoke("updateDocument", {"id": "missing", "description": "x"})


@pytest.mark.unit
@pytest.mark.asyncio
async def test_request_suggestions_parses_model_json(make_model_client, sink, events):
    client = make_model_client(responses={"other": "Texto original"})
    toolset = DefaultToolset(client, sink=sink)
    created = await toolset.invoke("createDocument", {"title": "Ensaio", "kind": "text"})

    client.responses["other"] = json.dumps([
        {"original_text": "Texto", "suggested_text": "O texto", "description": "Artigo"},
        {"unexpected": "shape"},
    ])
    result = await toolset.invoke("requestSuggestions", {"document_id": created["id"]})

    assert len(result["suggestions"]) == 1
    assert result["suggestions"][0]["suggested_text"] == "O texto"
    assert [type_ for type_, _ in events] == ["document", "suggestion"]


@pytest.mark.unit
def test_parse_suggestions_handles_fences_and_garbage():
    fenced = '```json\n[{"original_text": "a", "suggested_text": "b", "description": "c"}]\n```'

    assert len(parse_suggestions(fenced)) == 1
    assert parse_suggestions("not json") == []
    assert parse_suggestions('{"a": 1}') == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_weather_queries_forecast_api(model_client):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={
            "latitude": 38.7,
            "longitude": -9.1,
            "timezone": "Europe/Lisbon",
            "current": {"temperature_2m": 21.5},
            "daily": {"sunrise": ["2026-10-17T07:40"]},
        })

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        toolset = DefaultToolset(model_client, http_client=http_client)
        result = await toolset.invoke("getWeather", {"latitude": 38.7, "longitude": -9.1})

    assert result["current"]["temperature_2m"] == 21.5
    assert result["timezone"] == "Europe/Lisbon"
    assert seen["params"]["latitude"] == "38.7"
    assert seen["params"]["timezone"] == "auto"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_weather_propagates_http_errors(model_client):
    transport = httpx.MockTransport(lambda request: httpx.Response(503))

    async with httpx.AsyncClient(transport=transport) as http_client:
        toolset = DefaultToolset(model_client, http_client=http_client)
        with pytest.raises(httpx.HTTPStatusError):
            await toolset.invoke("getWeather", {"latitude": 0, "longitude": 0})


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalid_calls_are_rejected(model_client):
    toolset = DefaultToolset(model_client)

    with pytest.raises(UnknownToolError):
        await toolset.invoke("deleteEverything", {})
    with pytest.raises(ValidationError):
        await toolset.invoke("getWeather", {"latitude": "north"})
