"""Signal processing pipeline.

A ``FlowEngine`` runs each signal through the handler set until a handler
halts. Builders assemble an engine together with a fresh conversation
store; combinators compose smaller flows.
"""

from .builders import conversation, qa_agent, tool_agent
from .combinators import batch_processing, map_flow, task_flow, with_middleware
from .engine import FALLBACK_RESPONSE, FlowEngine
from .handlers import (
    DEFAULT_HANDLERS,
    classify_error,
    error_handler,
    handles,
    message_handler,
    response_handler,
    task_handler,
    thinking_handler,
    tool_call_handler,
    tool_result_handler,
)
from .models import Directive, Flow, FlowContext, FlowResult, Handler, HandlerResult

__all__ = [
    "DEFAULT_HANDLERS",
    "FALLBACK_RESPONSE",
    "Directive",
    "Flow",
    "FlowContext",
    "FlowEngine",
    "FlowResult",
    "Handler",
    "HandlerResult",
    "batch_processing",
    "classify_error",
    "conversation",
    "error_handler",
    "handles",
    "map_flow",
    "message_handler",
    "qa_agent",
    "response_handler",
    "task_flow",
    "task_handler",
    "thinking_handler",
    "tool_agent",
    "tool_call_handler",
    "tool_result_handler",
    "with_middleware",
]
