"""Capability interface for the tools the Consolidator stage may invoke."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ============================================================================
# Tool Contracts
# ============================================================================


DocumentKind = Literal["text", "code", "sheet"]


class CreateDocumentInput(BaseModel):
    title: str = Field(description="Title of the document to create")
    kind: DocumentKind = Field(default="text", description="Type of content")


class UpdateDocumentInput(BaseModel):
    id: str = Field(description="Id of the document to update")
    description: str = Field(description="Description of the changes to make")


class RequestSuggestionsInput(BaseModel):
    document_id: str = Field(description="Id of the document to suggest edits for")


class GetWeatherInput(BaseModel):
    latitude: float
    longitude: float


class DocumentOutput(BaseModel):
    id: str
    title: str
    kind: DocumentKind
    content: str
    message: str


class Suggestion(BaseModel):
    original_text: str
    suggested_text: str
    description: str


class SuggestionsOutput(BaseModel):
    document_id: str
    title: str
    suggestions: List[Suggestion]
    message: str


class WeatherOutput(BaseModel):
    latitude: float
    longitude: float
    timezone: Optional[str] = None
    current: Dict[str, Any] = Field(default_factory=dict)
    daily: Dict[str, Any] = Field(default_factory=dict)


class ToolSpec(BaseModel):
    """Binds a model-facing tool name to its input contract and handler."""

    name: str
    method: str
    description: str
    input_model: Type[BaseModel]


TOOL_SPECS: List[ToolSpec] = [
    ToolSpec(
        name="createDocument",
        method="create_document",
        description=(
            "Create a document for writing or content creation activities. "
            "Generates the document contents from the title and kind."
        ),
        input_model=CreateDocumentInput,
    ),
    ToolSpec(
        name="updateDocument",
        method="update_document",
        description="Update a document with the given description.",
        input_model=UpdateDocumentInput,
    ),
    ToolSpec(
        name="requestSuggestions",
        method="request_suggestions",
        description="Request suggestions for a document.",
        input_model=RequestSuggestionsInput,
    ),
    ToolSpec(
        name="getWeather",
        method="get_weather",
        description="Get the current weather at a location.",
        input_model=GetWeatherInput,
    ),
]


class UnknownToolError(ValueError):
    """The model asked for a tool outside the Consolidator toolset."""


# ============================================================================
# Toolset Interface
# ============================================================================


class ConsolidatorToolset(ABC):
    """Exactly the operations the Consolidator stage may invoke.

    Concrete toolsets implement the four operations; model providers only
    ever see ``descriptors()`` and call ``invoke()``.
    """

    @abstractmethod
    async def create_document(self, request: CreateDocumentInput) -> DocumentOutput:
        pass

    @abstractmethod
    async def update_document(self, request: UpdateDocumentInput) -> DocumentOutput:
        pass

    @abstractmethod
    async def request_suggestions(
        self, request: RequestSuggestionsInput
    ) -> SuggestionsOutput:
        pass

    @abstractmethod
    async def get_weather(self, request: GetWeatherInput) -> WeatherOutput:
        pass

    def descriptors(self) -> List[Dict[str, Any]]:
        """OpenAI function-calling descriptors for every tool."""
        return [
            {
                "type": "function",
                "function": {
                    "name": spec.name,
                    "description": spec.description,
                    "parameters": spec.input_model.model_json_schema(),
                },
            }
            for spec in TOOL_SPECS
        ]

    async def invoke(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate arguments and dispatch a tool call by its model-facing name.

        Args:
            name: Tool name as advertised in descriptors()
            arguments: Raw JSON arguments produced by the model

        Returns:
            JSON-safe tool result

        Raises:
            UnknownToolError: If the name is not part of the toolset
            pydantic.ValidationError: If the arguments do not match the contract
        """
        spec = next((s for s in TOOL_SPECS if s.name == name), None)
        if spec is None:
            raise UnknownToolError(f"Unknown tool: {name}")

        request = spec.input_model.model_validate(arguments)
        logger.info(f"Invoking tool {name}")
        result = await getattr(self, spec.method)(request)
        return result.model_dump(mode="json")
