"""Default Consolidator toolset: model-drafted documents and live weather."""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

import httpx

from backend.config import TITLE_MODEL, WEATHER_API_URL
from backend.http_pool import get_http_client
from backend.models import generate_uuid
from backend.providers.base import BaseLLMProvider
from .base import (
    ConsolidatorToolset,
    CreateDocumentInput,
    DocumentKind,
    DocumentOutput,
    GetWeatherInput,
    RequestSuggestionsInput,
    Suggestion,
    SuggestionsOutput,
    UpdateDocumentInput,
    WeatherOutput,
)

logger = logging.getLogger(__name__)

# Receives side-channel events ("document", "suggestion") for the live stream
EventSink = Callable[[str, Dict], Awaitable[None]]


DRAFT_PROMPTS: Dict[str, str] = {
    "text": (
        "Escreva sobre o tema indicado. Use Markdown quando apropriado e "
        "títulos quando fizer sentido."
    ),
    "code": (
        "Você é um gerador de código. Escreva um único trecho de código "
        "completo e executável, com comentários curtos e sem texto fora do código."
    ),
    "sheet": (
        "Você é um assistente de planilhas. Crie uma planilha em formato CSV "
        "com cabeçalhos e dados significativos."
    ),
}

UPDATE_PROMPT = (
    "Melhore o conteúdo a seguir de acordo com a instrução dada. "
    "Devolva apenas o documento completo atualizado.\n\n{content}"
)

SUGGESTIONS_PROMPT = (
    "Você é um assistente de escrita. Dado um texto, ofereça até 5 sugestões "
    "de melhoria. Responda apenas com um array JSON de objetos com as chaves "
    '"original_text", "suggested_text" e "description".'
)


@dataclass
class Document:
    id: str
    title: str
    kind: DocumentKind
    content: str


def parse_suggestions(raw: str) -> List[Suggestion]:
    """Parse the model's JSON array of suggestions, ignoring malformed entries."""
    text = raw.strip()
    if text.startswith("```"):
        text = text.strip("`")
        text = text[text.find("["):] if "[" in text else text

    try:
        items = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Suggestions response was not valid JSON")
        return []

    if not isinstance(items, list):
        return []

    suggestions = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            suggestions.append(Suggestion.model_validate(item))
        except ValueError:
            continue
    return suggestions


class DefaultToolset(ConsolidatorToolset):
    """
    Documents are drafted by the model and kept in memory for the lifetime of
    the toolset (one request). Every document change and suggestion is also
    pushed to ``sink`` so the live stream can render it.
    """

    def __init__(
        self,
        model_client: BaseLLMProvider,
        sink: Optional[EventSink] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        draft_model: str = TITLE_MODEL,
    ):
        self.model_client = model_client
        self.sink = sink
        self.http_client = http_client
        self.draft_model = draft_model
        self.documents: Dict[str, Document] = {}
        self._lock = asyncio.Lock()

    async def _emit(self, type_: str, data: Dict) -> None:
        if self.sink is not None:
            await self.sink(type_, data)

    async def _draft(self, system_prompt: str, user_content: str) -> str:
        response = await self.model_client.complete(
            system_prompt, user_content, model=self.draft_model
        )
        return response.content

    async def _get_document(self, document_id: str) -> Document:
        async with self._lock:
            document = self.documents.get(document_id)
        if document is None:
            raise KeyError(f"Document not found: {document_id}")
        return document

    async def create_document(self, request: CreateDocumentInput) -> DocumentOutput:
        content = await self._draft(DRAFT_PROMPTS[request.kind], request.title)
        document = Document(
            id=generate_uuid(),
            title=request.title,
            kind=request.kind,
            content=content,
        )
        async with self._lock:
            self.documents[document.id] = document

        logger.info(f"✓ Created {document.kind} document {document.id}")
        await self._emit("document", {
            "id": document.id,
            "title": document.title,
            "kind": document.kind,
            "content": document.content,
        })

        return DocumentOutput(
            id=document.id,
            title=document.title,
            kind=document.kind,
            content=document.content,
            message="A document was created and is now visible to the user.",
        )

    async def update_document(self, request: UpdateDocumentInput) -> DocumentOutput:
        document = await self._get_document(request.id)
        document.content = await self._draft(
            UPDATE_PROMPT.format(content=document.content), request.description
        )

        logger.info(f"✓ Updated document {document.id}")
        await self._emit("document", {
            "id": document.id,
            "title": document.title,
            "kind": document.kind,
            "content": document.content,
        })

        return DocumentOutput(
            id=document.id,
            title=document.title,
            kind=document.kind,
            content=document.content,
            message="The document has been updated successfully.",
        )

    async def request_suggestions(
        self, request: RequestSuggestionsInput
    ) -> SuggestionsOutput:
        document = await self._get_document(request.document_id)
        suggestions = parse_suggestions(
            await self._draft(SUGGESTIONS_PROMPT, document.content)
        )

        for suggestion in suggestions:
            await self._emit("suggestion", {
                "document_id": document.id,
                **suggestion.model_dump(),
            })

        return SuggestionsOutput(
            document_id=document.id,
            title=document.title,
            suggestions=suggestions,
            message="Suggestions have been added to the document.",
        )

    async def get_weather(self, request: GetWeatherInput) -> WeatherOutput:
        params = {
            "latitude": request.latitude,
            "longitude": request.longitude,
            "current": "temperature_2m",
            "hourly": "temperature_2m",
            "daily": "sunrise,sunset",
            "timezone": "auto",
        }

        client = self.http_client or get_http_client()
        response = await client.get(WEATHER_API_URL, params=params)
        response.raise_for_status()
        data = response.json()

        return WeatherOutput(
            latitude=data.get("latitude", request.latitude),
            longitude=data.get("longitude", request.longitude),
            timezone=data.get("timezone"),
            current=data.get("current", {}),
            daily=data.get("daily", {}),
        )
