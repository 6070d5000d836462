"""SQLite store backend.

Persists one JSON snapshot per conversation using aiosqlite.
"""

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from ..models import ConversationStore
from .base import StoreBackend


class SQLiteStoreBackend(StoreBackend):
    """SQLite-backed conversation persistence.

    The full store is written as a JSON document; history order and
    every record survive a round trip unchanged.
    """

    def __init__(self, path: str | Path = "./conversations.db"):
        self._db_path = Path(path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database and create the schema."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._db_path)
        await self._create_schema()

    async def _create_schema(self) -> None:
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS conversations (
                conversation_id TEXT PRIMARY KEY,
                snapshot TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        await self._connection.commit()

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("SQLite store backend is not connected")
        return self._connection

    async def load(self, conversation_id: str) -> ConversationStore | None:
        connection = self._require_connection()
        async with connection.execute(
            "SELECT snapshot FROM conversations WHERE conversation_id = ?",
            (conversation_id,)
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None
        return ConversationStore.model_validate_json(row[0])

    async def save(self, store: ConversationStore) -> None:
        connection = self._require_connection()
        now = datetime.now(timezone.utc).isoformat()

        await connection.execute("""
            INSERT INTO conversations (conversation_id, snapshot, created_at, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(conversation_id) DO UPDATE SET
                snapshot = excluded.snapshot,
                updated_at = excluded.updated_at
        """, (
            store.conversation_id,
            store.model_dump_json(),
            store.created_at.isoformat(),
            now
        ))
        await connection.commit()

    async def delete(self, conversation_id: str) -> None:
        connection = self._require_connection()
        await connection.execute(
            "DELETE FROM conversations WHERE conversation_id = ?",
            (conversation_id,)
        )
        await connection.commit()

    async def list_conversations(self) -> list[str]:
        connection = self._require_connection()
        async with connection.execute(
            "SELECT conversation_id FROM conversations ORDER BY created_at ASC"
        ) as cursor:
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
