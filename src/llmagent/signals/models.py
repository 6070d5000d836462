"""Signal envelope passed between every component of the engine."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SignalType(str, Enum):
    """Kinds of signals understood by the handler set."""

    USER_MESSAGE = "user_message"
    SYSTEM_MESSAGE = "system_message"
    THINKING = "thinking"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    TASK_STATE = "task_state"
    RESPONSE = "response"
    ERROR = "error"


def _default_meta() -> dict[str, Any]:
    return {
        "signal_id": str(uuid.uuid4()),
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


class Signal(BaseModel):
    """Immutable typed event.

    Attributes:
        type: The signal kind
        data: Payload, shape depends on ``type``
        meta: Free-form metadata (step counters, timings, ids)
    """

    model_config = ConfigDict(frozen=True)

    type: SignalType = Field(description="Signal kind")
    data: Any = Field(default=None, description="Type-specific payload")
    meta: dict[str, Any] = Field(default_factory=_default_meta)

    @classmethod
    def new(
        cls,
        type: SignalType | str,
        data: Any = None,
        meta: dict[str, Any] | None = None
    ) -> "Signal":
        """Create a signal, filling in id and timestamp metadata."""
        merged = _default_meta()
        if meta:
            merged.update(meta)
        return cls(type=SignalType(type), data=data, meta=merged)

    def with_meta(self, **updates: Any) -> "Signal":
        """Return a copy with merged metadata."""
        return self.model_copy(update={"meta": {**self.meta, **updates}})

    def is_terminal(self) -> bool:
        """Whether this signal can end a conversation turn."""
        return self.type in (SignalType.RESPONSE, SignalType.ERROR)

    def __str__(self) -> str:
        return f"{self.type.value}: {self.data!r}"


def user_message(content: str, meta: dict[str, Any] | None = None) -> Signal:
    """Create a user message signal."""
    return Signal.new(SignalType.USER_MESSAGE, content, meta)


def system_message(content: str, meta: dict[str, Any] | None = None) -> Signal:
    """Create a system message signal."""
    return Signal.new(SignalType.SYSTEM_MESSAGE, content, meta)


def thinking(
    thought: str,
    step: int,
    meta: dict[str, Any] | None = None
) -> Signal:
    """Create a thinking signal carrying its step number in ``meta["step"]``."""
    return Signal.new(SignalType.THINKING, thought, {**(meta or {}), "step": step})


def tool_call(
    name: str,
    args: dict[str, Any] | None = None,
    meta: dict[str, Any] | None = None
) -> Signal:
    """Create a tool call request signal."""
    return Signal.new(SignalType.TOOL_CALL, {"name": name, "args": args or {}}, meta)


def tool_result(
    name: str,
    result: Any,
    meta: dict[str, Any] | None = None
) -> Signal:
    """Create a tool result signal."""
    return Signal.new(SignalType.TOOL_RESULT, {"name": name, "result": result}, meta)


def task_state(
    task_id: str,
    state: str,
    meta: dict[str, Any] | None = None
) -> Signal:
    """Create a task state update signal."""
    return Signal.new(SignalType.TASK_STATE, {"task_id": task_id, "state": state}, meta)


def response(content: str, meta: dict[str, Any] | None = None) -> Signal:
    """Create a response signal."""
    return Signal.new(SignalType.RESPONSE, content, meta)


def error(
    message: str,
    source: str,
    context: dict[str, Any] | None = None,
    meta: dict[str, Any] | None = None
) -> Signal:
    """Create an error signal.

    Args:
        message: Human readable description
        source: Where the error originated (``llm_call``, ``not_found``, ...)
        context: Extra structured details (tool name, violations, ...)
        meta: Signal metadata
    """
    return Signal.new(
        SignalType.ERROR,
        {"message": message, "source": source, "context": context or {}},
        meta
    )
