from .base import StoreBackend
from .factory import create_store_backend
from .in_memory import InMemoryStoreBackend
from .sqlite import SQLiteStoreBackend

__all__ = [
    "InMemoryStoreBackend",
    "SQLiteStoreBackend",
    "StoreBackend",
    "create_store_backend",
]
