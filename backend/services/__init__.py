"""Service layer between API routes and the pipeline/streaming core."""

from .chat_service import ChatService

__all__ = ["ChatService"]
