"""Storage contract for chats and their messages."""

from abc import ABC, abstractmethod
from typing import List, Optional

from backend.models import Chat, ChatMessage


class ChatStore(ABC):
    """
    Persistence for chats and messages.

    Implementations must return messages of a chat ordered by creation time,
    oldest first.
    """

    @abstractmethod
    async def get_chat(self, chat_id: str) -> Optional[Chat]:
        pass

    @abstractmethod
    async def save_chat(self, chat: Chat) -> None:
        pass

    @abstractmethod
    async def delete_chat(self, chat_id: str) -> Optional[Chat]:
        """Delete a chat and all of its messages. Returns the deleted chat."""

    @abstractmethod
    async def save_messages(self, messages: List[ChatMessage]) -> None:
        pass

    @abstractmethod
    async def get_messages_by_chat_id(self, chat_id: str) -> List[ChatMessage]:
        pass

    @abstractmethod
    async def get_message_count_by_user_id(self, user_id: str, hours: int = 24) -> int:
        """Number of user-authored messages across the user's chats in the window."""
