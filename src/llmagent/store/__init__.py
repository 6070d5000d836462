"""Per-conversation state store.

Holds history, thoughts, tool calls, tasks, preferences and errors for one
conversation, with optional persistence backends and a serializing actor
for shared access.
"""

from .actor import StoreActor, store_lock
from .backends import (
    InMemoryStoreBackend,
    SQLiteStoreBackend,
    StoreBackend,
    create_store_backend,
)
from .models import (
    ConversationStore,
    ErrorRecord,
    HistoryEntry,
    TaskStatusRecord,
    ToolCallRecord,
)

__all__ = [
    "ConversationStore",
    "ErrorRecord",
    "HistoryEntry",
    "InMemoryStoreBackend",
    "SQLiteStoreBackend",
    "StoreActor",
    "StoreBackend",
    "TaskStatusRecord",
    "ToolCallRecord",
    "create_store_backend",
    "store_lock",
]
