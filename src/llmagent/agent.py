"""High-level agent API.

``new`` and ``process`` are the shortest path from a system prompt to an
answer. ``Agent`` bundles an engine with its store and, optionally, a
persistence backend so a conversation survives restarts.
"""

from collections.abc import Iterable
from typing import Any

import structlog

from . import signals
from .config import AgentConfig
from .flows import FlowEngine, FlowResult, conversation
from .llm import LLMProvider, UsageSummary
from .logging import bind_conversation
from .prompts import get_system_prompt
from .store import ConversationStore, StoreBackend
from .tools import ToolLike, ToolRegistry

logger = structlog.get_logger(__name__)


def _describe_tools(registry: ToolRegistry) -> str:
    if not len(registry):
        return "None"
    return "\n".join(f"- {tool.name}: {tool.description}" for tool in registry)


class Agent:
    """A conversational agent bound to one conversation store.

    Example:
        >>> agent = Agent.create(tools=default_tools())
        >>> result = await agent.process("Calculate 40+2")
        >>> result.content
        'The result is 42.'
    """

    def __init__(
        self,
        engine: FlowEngine,
        store: ConversationStore,
        backend: StoreBackend | None = None
    ):
        self.engine = engine
        self.store = store
        self.backend = backend

    @classmethod
    def create(
        cls,
        system_prompt: str | None = None,
        tools: Iterable[ToolLike] | ToolRegistry = (),
        *,
        provider: LLMProvider | None = None,
        config: AgentConfig | None = None,
        backend: StoreBackend | None = None,
        store: ConversationStore | None = None,
        **options: Any
    ) -> "Agent":
        """Create an agent.

        Args:
            system_prompt: System prompt (default: bundled prompt listing the tools)
            tools: Tools available to the agent
            provider: LLM provider (default: configured from the environment)
            config: Limits and defaults (default: ``AgentConfig.from_env()``)
            backend: Optional backend the store is saved to after each message
            store: Existing conversation to continue instead of a fresh one
            **options: Passed on to ``flows.conversation``
        """
        registry = tools if isinstance(tools, ToolRegistry) else ToolRegistry(tools)
        if system_prompt is None:
            system_prompt = get_system_prompt(_describe_tools(registry))

        engine, fresh = conversation(
            system_prompt,
            registry,
            provider=provider,
            config=config,
            **options
        )
        return cls(engine, store if store is not None else fresh, backend)

    @classmethod
    async def resume(
        cls,
        conversation_id: str,
        backend: StoreBackend,
        system_prompt: str | None = None,
        tools: Iterable[ToolLike] | ToolRegistry = (),
        **options: Any
    ) -> "Agent":
        """Continue a persisted conversation, or start it if unknown."""
        store = await backend.load(conversation_id)
        if store is None:
            agent = cls.create(
                system_prompt,
                tools,
                backend=backend,
                conversation_id=conversation_id,
                **options
            )
            logger.info("conversation_created", conversation_id=conversation_id)
            return agent

        logger.info("conversation_resumed", conversation_id=conversation_id, entries=len(store.history))
        return cls.create(system_prompt, tools, backend=backend, store=store, **options)

    @property
    def conversation_id(self) -> str:
        return self.store.conversation_id

    @property
    def usage(self) -> UsageSummary:
        return self.engine.context.usage

    async def process(
        self,
        message: str,
        *,
        timeout: float | None = None,
        max_steps: int | None = None
    ) -> FlowResult:
        """Process one user message and return the terminal result."""
        bind_conversation(self.store.conversation_id)

        result = await self.engine.process(
            signals.user_message(message),
            self.store,
            max_steps=max_steps,
            timeout=timeout
        )
        self.store = result.store

        if self.backend is not None:
            await self.backend.save(self.store)

        return result

    async def ask(self, message: str, **kwargs: Any) -> str:
        """Process a message and return just the reply text."""
        result = await self.process(message, **kwargs)
        if result.signal.type == signals.SignalType.ERROR:
            return str(result.signal.data["message"])
        return str(result.content)


def new(
    system_prompt: str,
    tools: Iterable[ToolLike] | ToolRegistry = (),
    **options: Any
) -> tuple[FlowEngine, ConversationStore]:
    """Create an engine and a store seeded with ``system_prompt``."""
    return conversation(system_prompt, tools, **options)


async def process(
    engine: FlowEngine,
    store: ConversationStore,
    message: str,
    timeout: float = 30.0,
    max_steps: int | None = None
) -> FlowResult:
    """Process a user message through an engine."""
    return await engine.process(
        signals.user_message(message),
        store,
        max_steps=max_steps,
        timeout=timeout
    )
