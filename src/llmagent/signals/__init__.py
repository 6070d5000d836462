"""Typed signals for agent communication.

Signal types:
- user_message, system_message
- thinking
- tool_call, tool_result
- task_state
- response, error
"""

from .models import (
    Signal,
    SignalType,
    error,
    response,
    system_message,
    task_state,
    thinking,
    tool_call,
    tool_result,
    user_message,
)

__all__ = [
    "Signal",
    "SignalType",
    "error",
    "response",
    "system_message",
    "task_state",
    "thinking",
    "tool_call",
    "tool_result",
    "user_message",
]
