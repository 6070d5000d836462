"""Control types shared by the engine and the handlers."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..llm import LLMProvider, UsageSummary
from ..signals import Signal, SignalType
from ..store import ConversationStore
from ..tools import ToolExecutor, ToolRegistry


class Directive(str, Enum):
    """What a handler tells the engine to do next."""

    SKIP = "skip"
    EMIT = "emit"
    HALT = "halt"


@dataclass(frozen=True)
class HandlerResult:
    """A directive plus the (possibly new) signal and the store to carry on with."""

    directive: Directive
    store: ConversationStore
    signal: Signal | None = None

    @classmethod
    def skip(cls, store: ConversationStore) -> "HandlerResult":
        return cls(Directive.SKIP, store)

    @classmethod
    def emit(cls, signal: Signal, store: ConversationStore) -> "HandlerResult":
        return cls(Directive.EMIT, store, signal)

    @classmethod
    def halt(cls, signal: Signal, store: ConversationStore) -> "HandlerResult":
        return cls(Directive.HALT, store, signal)


@dataclass(frozen=True)
class FlowResult:
    """Overall outcome of processing one input signal.

    Attributes:
        directive: HALT for a normal run; EMIT/SKIP only from partial flows
        signal: The final signal (``response`` or ``error``)
        state: The state after processing (a ConversationStore for the engine)
        steps: Number of signals re-entered into the pipeline
        elapsed: Wall time in seconds
    """

    directive: Directive
    signal: Signal
    state: Any
    steps: int = 0
    elapsed: float = 0.0

    @property
    def store(self) -> ConversationStore:
        return self.state

    @property
    def content(self) -> Any:
        return self.signal.data

    @property
    def ok(self) -> bool:
        return self.signal.type == SignalType.RESPONSE


@dataclass
class FlowContext:
    """Collaborators and options handlers need besides the store.

    Attributes:
        llm: Provider queried by the message, thinking and tool_result handlers
        tools: Registry of available tools
        executor: Runs tools with timing and fault capture
        response_formatter: Optional callable applied to final responses
        llm_options: Extra keyword arguments for every provider call
        history_window: Number of history entries sent to the provider
        max_thinking_steps: Longest allowed chain of thinking signals
        tool_timeout: Seconds allowed per tool call (None: unbounded)
        usage: Token usage across all provider calls
    """

    llm: LLMProvider
    tools: ToolRegistry = field(default_factory=ToolRegistry)
    executor: ToolExecutor = field(default_factory=ToolExecutor)
    response_formatter: Callable[[str], str] | None = None
    llm_options: dict[str, Any] = field(default_factory=dict)
    history_window: int = 10
    max_thinking_steps: int = 5
    tool_timeout: float | None = None
    usage: UsageSummary = field(default_factory=UsageSummary)


Handler = Callable[[Signal, ConversationStore, FlowContext], Awaitable[HandlerResult]]
Flow = Callable[[Signal, Any], Awaitable[FlowResult]]
