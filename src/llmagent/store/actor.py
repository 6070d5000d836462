"""Serializing mailbox around a conversation store.

When more than one caller touches the same store (the conversation loop
and a background task worker), every read and write goes through a
single consumer so that appends are applied strictly in arrival order.
"""

import asyncio
import weakref
from collections.abc import Callable
from typing import Any

import structlog

from .models import ConversationStore

logger = structlog.get_logger(__name__)

_locks: dict[int, asyncio.Lock] = {}


def store_lock(store: ConversationStore) -> asyncio.Lock:
    """Return the write lock shared by every writer of ``store``.

    ``FlowEngine.process``, ``TaskManager`` and ``StoreActor`` hold it while
    they change the store, so a rollback after a failed handler can never
    erase another writer's changes. The lock is not reentrant: code running
    inside ``FlowEngine.process`` must not wait on a writer of the same store.
    """
    key = id(store)
    lock = _locks.get(key)
    if lock is None:
        lock = _locks[key] = asyncio.Lock()
        weakref.finalize(store, _locks.pop, key, None)
    return lock


class StoreActor:
    """Owns a store and applies queued operations one at a time.

    Usage:
        async with StoreActor(store) as actor:
            await actor.call(ConversationStore.add_message, "user", "hi")
            history = await actor.call(ConversationStore.get_llm_history, 5)
    """

    def __init__(self, store: ConversationStore):
        self._store = store
        self._mailbox: asyncio.Queue[tuple[Callable[..., Any], tuple, dict, asyncio.Future]] = (
            asyncio.Queue()
        )
        self._worker: asyncio.Task | None = None

    @property
    def store(self) -> ConversationStore:
        """The owned store. Read it directly only when no worker is running."""
        return self._store

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the mailbox consumer."""
        if self.running:
            return
        self._worker = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Drain pending operations and stop the consumer."""
        if not self.running:
            return
        await self._mailbox.join()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def call(self, operation: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Queue ``operation(store, *args, **kwargs)`` and wait for its result."""
        if not self.running:
            self.start()
        future = asyncio.get_running_loop().create_future()
        await self._mailbox.put((operation, args, kwargs, future))
        return await future

    async def _run(self) -> None:
        while True:
            operation, args, kwargs, future = await self._mailbox.get()
            try:
                async with store_lock(self._store):
                    result = operation(self._store, *args, **kwargs)
            except Exception as e:
                logger.warning(
                    "store_operation_failed",
                    conversation_id=self._store.conversation_id,
                    operation=getattr(operation, "__name__", repr(operation)),
                    error=str(e),
                )
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                self._mailbox.task_done()

    async def __aenter__(self) -> "StoreActor":
        self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()
