"""Error taxonomy for the orchestration engine.

Every failure an agent can hit is classified into one of the
``ErrorKind`` members. Handlers catch these at their origin and convert
them into ``error`` signals; only the error handler decides what the
user sees.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Classification stored in the conversation error log."""

    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    EXECUTION_ERROR = "execution_error"
    LLM_ERROR = "llm_error"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class AgentError(Exception):
    """Base class for agent errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def is_retryable(self) -> bool:
        """Override in subclasses to control retry behavior."""
        return False


class ToolNotFoundError(AgentError):
    """No tool is registered under the requested name."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, tool_name: str):
        super().__init__(f"Tool not found: {tool_name}")
        self.tool_name = tool_name


class ToolValidationError(AgentError):
    """Tool arguments violate the declared parameter schema."""

    kind = ErrorKind.VALIDATION_ERROR

    def __init__(self, tool_name: str, violations: dict[str, Any]):
        super().__init__(f"Invalid arguments for tool '{tool_name}': {violations}")
        self.tool_name = tool_name
        self.violations = violations


class ToolExecutionError(AgentError):
    """Tool raised while running."""

    kind = ErrorKind.EXECUTION_ERROR

    def __init__(self, message: str, tool_name: str | None = None):
        msg = f"Tool execution error: {message}"
        if tool_name:
            msg += f" (tool: {tool_name})"
        super().__init__(msg)
        self.tool_name = tool_name


class LLMError(AgentError):
    """Provider call failed or returned something unusable."""

    kind = ErrorKind.LLM_ERROR


class LLMRateLimitError(LLMError):
    """LLM API rate limit exceeded (retryable)."""

    def __init__(self, message: str):
        super().__init__(f"Rate limit exceeded: {message}")

    def is_retryable(self) -> bool:
        return True


class LLMNetworkError(LLMError):
    """Network or connection error (retryable)."""

    def __init__(self, message: str):
        super().__init__(f"Network error: {message}")

    def is_retryable(self) -> bool:
        return True


class FlowTimeoutError(AgentError):
    """The pipeline exceeded its step budget or wall-clock timeout."""

    kind = ErrorKind.TIMEOUT


class TaskError(AgentError):
    """A task stage failed."""

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.stage = stage


class TaskControlUnsupportedError(AgentError):
    """Cancel, pause and resume are not supported for tasks."""

    def __init__(self, operation: str, task_id: str):
        super().__init__(
            f"Task {operation} is not supported (task: {task_id})"
        )
        self.operation = operation
        self.task_id = task_id
