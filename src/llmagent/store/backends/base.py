"""Abstract base class for conversation store backends.

This module defines the interface for persisting conversation stores.
The abstraction hides:
- Storage format (JSON snapshot, rows, ...)
- Persistence mechanism (in-memory, database file)
- Connection management
"""

from abc import ABC, abstractmethod
from typing import Any

from ..models import ConversationStore


class StoreBackend(ABC):
    """Abstract persistence backend for conversation stores.

    Supports async context manager protocol:
        async with backend:
            store = await backend.load(conversation_id)
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the backend gracefully."""

    @abstractmethod
    async def load(self, conversation_id: str) -> ConversationStore | None:
        """Load a stored conversation, or None if it does not exist."""

    @abstractmethod
    async def save(self, store: ConversationStore) -> None:
        """Persist a conversation, replacing any previous snapshot."""

    @abstractmethod
    async def delete(self, conversation_id: str) -> None:
        """Discard a conversation."""

    @abstractmethod
    async def list_conversations(self) -> list[str]:
        """Ids of all stored conversations."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def load_or_create(self, conversation_id: str) -> ConversationStore:
        """Load a conversation, creating an empty store if absent."""
        store = await self.load(conversation_id)
        if store is None:
            store = ConversationStore(conversation_id=conversation_id)
        return store

    async def __aenter__(self) -> "StoreBackend":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()
