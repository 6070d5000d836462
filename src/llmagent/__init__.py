"""
llmagent: signal-driven orchestration for LLM agents.

A user message becomes a bounded sequence of typed signals (think, call a
tool, observe its result, respond, or fail) processed by a fixed set of
handlers against a per-conversation store.
"""

__version__ = "0.1.0"

from .agent import Agent, new, process
from .config import AgentConfig, create_provider
from .flows import (
    Directive,
    FlowContext,
    FlowEngine,
    FlowResult,
    HandlerResult,
    conversation,
    qa_agent,
    tool_agent,
)
from .signals import Signal, SignalType
from .store import ConversationStore
from .tasks import TaskManager, TaskStage
from .tools import BaseTool, FunctionTool, ToolRegistry

__all__ = [
    "Agent",
    "AgentConfig",
    "BaseTool",
    "ConversationStore",
    "Directive",
    "FlowContext",
    "FlowEngine",
    "FlowResult",
    "FunctionTool",
    "HandlerResult",
    "Signal",
    "SignalType",
    "TaskManager",
    "TaskStage",
    "ToolRegistry",
    "conversation",
    "create_provider",
    "new",
    "process",
    "qa_agent",
    "tool_agent",
]
