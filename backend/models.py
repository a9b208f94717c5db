"""Request/response and persistence models for chats and messages."""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Literal, Optional
import uuid

from pydantic import AfterValidator, BaseModel, Field


def utcnow() -> datetime:
    """Timezone-aware current time (UTC)."""
    return datetime.now(timezone.utc)


def generate_uuid() -> str:
    """Generate a new opaque identifier."""
    return str(uuid.uuid4())


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps without a timezone are taken to be UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


Role = Literal["user", "assistant", "system"]
Visibility = Literal["public", "private"]
UserType = Literal["guest", "regular"]


class ChatMessage(BaseModel):
    """A single persisted message in a chat."""

    id: str = Field(default_factory=generate_uuid)
    chat_id: Optional[str] = None
    role: Role
    content: str
    created_at: UtcDatetime = Field(default_factory=utcnow)


class Chat(BaseModel):
    """Chat metadata."""

    id: str
    user_id: str
    title: str
    visibility: Visibility = "private"
    created_at: UtcDatetime = Field(default_factory=utcnow)


class RequestHints(BaseModel):
    """Location hints about where a request came from."""

    latitude: Optional[str] = None
    longitude: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None


class SessionUser(BaseModel):
    """Authenticated caller."""

    id: str
    type: UserType = "regular"


class IncomingMessage(BaseModel):
    """User message as sent by the client."""

    id: str = Field(default_factory=generate_uuid)
    content: str = Field(min_length=1, max_length=2000)
    created_at: Optional[UtcDatetime] = None


class PostChatRequest(BaseModel):
    """Body of POST /api/chat."""

    id: str
    message: IncomingMessage
    selected_chat_model: Literal["chat-model", "chat-model-reasoning"] = "chat-model"
    selected_visibility_type: Visibility = "private"
    hints: Optional[RequestHints] = None

    def to_message(self) -> ChatMessage:
        """Convert the incoming message into a persisted user message."""
        # Never stamp a message later than the server clock, or it would sort
        # after the reply it prompted.
        now = utcnow()
        sent_at = self.message.created_at
        return ChatMessage(
            id=self.message.id,
            chat_id=self.id,
            role="user",
            content=self.message.content,
            created_at=min(sent_at, now) if sent_at else now,
        )


def message_to_payload(message: ChatMessage) -> Dict[str, Any]:
    """JSON-safe representation of a message for control chunks."""
    return message.model_dump(mode="json")
