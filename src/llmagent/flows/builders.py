"""Factory functions that assemble a ready-to-use engine and store."""

from collections.abc import Callable, Iterable
from typing import Any

from ..config import AgentConfig, create_provider
from ..llm import LLMProvider
from ..store import ConversationStore
from ..tools import ToolExecutor, ToolLike, ToolRegistry
from .engine import FlowEngine
from .models import FlowContext


def conversation(
    system_prompt: str,
    tools: Iterable[ToolLike] | ToolRegistry = (),
    *,
    provider: LLMProvider | None = None,
    config: AgentConfig | None = None,
    response_formatter: Callable[[str], str] | None = None,
    llm_options: dict[str, Any] | None = None,
    tool_timeout: float | None = None,
    conversation_id: str | None = None
) -> tuple[FlowEngine, ConversationStore]:
    """Create a conversational agent.

    Args:
        system_prompt: First transcript entry, defines the agent's behavior
        tools: Tools (``BaseTool`` instances or definition dicts) or a registry
        provider: LLM provider (default: the one configured in the environment)
        config: Limits and defaults (default: ``AgentConfig.from_env()``)
        response_formatter: Optional callable applied to final responses
        llm_options: Extra keyword arguments passed to every provider call
        tool_timeout: Seconds allowed per tool call
        conversation_id: Id for the new store (default: random uuid)

    Returns:
        Tuple of (engine, store). The store already holds the system prompt.

    Example:
        >>> engine, store = conversation("You are a helpful assistant.", [CalculatorTool()])
        >>> result = await engine.process(signals.user_message("Calculate 40+2"), store)
    """
    config = config or AgentConfig.from_env()
    registry = tools if isinstance(tools, ToolRegistry) else ToolRegistry(tools)

    context = FlowContext(
        llm=provider or create_provider(config),
        tools=registry,
        executor=ToolExecutor(default_timeout=tool_timeout),
        response_formatter=response_formatter,
        llm_options=dict(llm_options or {}),
        history_window=config.history_window,
        max_thinking_steps=config.max_thinking_steps,
        tool_timeout=tool_timeout,
    )
    engine = FlowEngine(context, max_steps=config.max_steps, timeout=config.timeout)

    store = ConversationStore(conversation_id=conversation_id) if conversation_id else ConversationStore()
    store.add_message("system", system_prompt)

    return engine, store


def qa_agent(system_prompt: str, **options: Any) -> tuple[FlowEngine, ConversationStore]:
    """Question answering agent without tools."""
    return conversation(system_prompt, (), **options)


def tool_agent(
    system_prompt: str,
    tools: Iterable[ToolLike] | ToolRegistry,
    **options: Any
) -> tuple[FlowEngine, ConversationStore]:
    """Agent that can call the given tools."""
    return conversation(system_prompt, tools, **options)
