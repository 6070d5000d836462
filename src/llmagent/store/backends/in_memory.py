"""In-memory store backend.

Keeps JSON snapshots in a dict. Data is lost when the process exits.
"""

from ..models import ConversationStore
from .base import StoreBackend


class InMemoryStoreBackend(StoreBackend):
    """Session-only persistence, suitable for tests and single runs.

    Snapshots are stored serialized so later mutations of a loaded store
    never leak back into the backend.
    """

    def __init__(self) -> None:
        self._snapshots: dict[str, str] = {}

    async def connect(self) -> None:
        """No-op for in-memory."""

    async def disconnect(self) -> None:
        """No-op for in-memory."""

    async def load(self, conversation_id: str) -> ConversationStore | None:
        raw = self._snapshots.get(conversation_id)
        if raw is None:
            return None
        return ConversationStore.model_validate_json(raw)

    async def save(self, store: ConversationStore) -> None:
        self._snapshots[store.conversation_id] = store.model_dump_json()

    async def delete(self, conversation_id: str) -> None:
        self._snapshots.pop(conversation_id, None)

    async def list_conversations(self) -> list[str]:
        return list(self._snapshots)

    @property
    def backend_type(self) -> str:
        return "memory"
