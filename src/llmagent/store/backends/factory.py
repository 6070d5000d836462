"""Factory for creating store backends."""

from typing import Any

from .base import StoreBackend


def create_store_backend(
    backend: str = "memory",
    **kwargs: Any
) -> StoreBackend:
    """Create a conversation store backend.

    Args:
        backend: Backend type ("memory" or "sqlite")
        **kwargs: Backend-specific configuration
            For sqlite:
                - path: str | Path (default: ./conversations.db)

    Returns:
        StoreBackend instance

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "memory":
        from .in_memory import InMemoryStoreBackend
        return InMemoryStoreBackend(**kwargs)

    elif backend == "sqlite":
        from .sqlite import SQLiteStoreBackend
        return SQLiteStoreBackend(**kwargs)

    raise ValueError(
        f"Unsupported store backend: {backend}. "
        f"Supported backends: memory, sqlite"
    )
