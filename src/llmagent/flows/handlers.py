"""The standard handler set.

Each handler processes exactly one signal type and skips everything else.
A handler reads and updates the store, optionally queries the provider or
runs a tool, and returns a ``HandlerResult``:

- message handler      user_message -> thinking | tool_call | response | error
- thinking handler     thinking     -> thinking | tool_call | response | error
- tool_call handler    tool_call    -> tool_result | error
- tool_result handler  tool_result  -> thinking | tool_call | response | error
- task handler         task_state   -> skip (state update only)
- response handler     response     -> halt
- error handler        error        -> response
"""

import functools
from collections.abc import Callable
from typing import Any

import structlog

from .. import signals
from ..errors import ErrorKind, ToolExecutionError, ToolNotFoundError, ToolValidationError
from ..llm import ChatMessage, Decision, parse_decision
from ..prompts import format_thoughts
from ..signals import Signal, SignalType
from ..store import ConversationStore
from ..tools import ToolExecution, json_type_of, validate
from .models import FlowContext, Handler, HandlerResult

logger = structlog.get_logger(__name__)


def handles(signal_type: SignalType) -> Callable[[Handler], Handler]:
    """Bind a handler to one signal type; other signals are skipped."""

    def decorator(func: Handler) -> Handler:
        @functools.wraps(func)
        async def wrapper(
            signal: Signal,
            store: ConversationStore,
            context: FlowContext
        ) -> HandlerResult:
            if signal.type != signal_type:
                return HandlerResult.skip(store)
            return await func(signal, store, context)

        wrapper.signal_type = signal_type
        return wrapper

    return decorator


async def _ask_llm(
    store: ConversationStore,
    context: FlowContext,
    extra: list[ChatMessage] | None = None
) -> Decision:
    """Query the provider with the history window and derive a decision.

    Provider failures become an ``error`` decision.
    """
    messages = [
        ChatMessage(role=entry.role, content=entry.content, name=entry.name)
        for entry in store.get_llm_history(context.history_window)
    ]
    messages.extend(extra or [])

    try:
        response = await context.llm.chat_completion(
            messages,
            tools=context.tools.specs() or None,
            **context.llm_options
        )
    except Exception as e:
        logger.warning("llm_call_failed", error=str(e), error_type=type(e).__name__)
        return Decision(kind="error", content=str(e) or type(e).__name__)

    context.usage.add_response(response)
    decision = parse_decision(response)
    logger.debug("llm_decision", kind=decision.kind, tool=decision.tool_name)
    return decision


def _apply_decision(
    decision: Decision,
    store: ConversationStore,
    error_source: str,
    step: int = 1
) -> HandlerResult:
    """Turn a provider decision into the next signal."""
    if decision.kind == "thinking":
        if decision.content not in store.thoughts:
            store.add_thought(decision.content)
        return HandlerResult.emit(signals.thinking(decision.content, step), store)

    if decision.kind == "tool_call":
        return HandlerResult.emit(
            signals.tool_call(decision.tool_name, decision.arguments),
            store
        )

    if decision.kind == "response":
        store.add_message("assistant", decision.content)
        return HandlerResult.emit(signals.response(decision.content), store)

    return HandlerResult.emit(signals.error(decision.content, error_source), store)


@handles(SignalType.USER_MESSAGE)
async def message_handler(
    signal: Signal,
    store: ConversationStore,
    context: FlowContext
) -> HandlerResult:
    """Record the user message and ask the provider what to do."""
    logger.info("processing_user_message", conversation_id=store.conversation_id)

    store.start_cycle()
    store.add_message("user", str(signal.data))

    decision = await _ask_llm(store, context)
    return _apply_decision(decision, store, error_source="llm_call")


@handles(SignalType.THINKING)
async def thinking_handler(
    signal: Signal,
    store: ConversationStore,
    context: FlowContext
) -> HandlerResult:
    """Record a thought and ask the provider for the next action."""
    step = int(signal.meta.get("step", 1))
    thought = str(signal.data)
    logger.info("processing_thinking_step", step=step)

    if thought not in store.thoughts:
        store.add_thought(thought)

    if step > context.max_thinking_steps:
        return HandlerResult.emit(
            signals.error(
                f"Exceeded maximum thinking steps ({context.max_thinking_steps})",
                "thinking",
                context={"step": step}
            ),
            store
        )

    extra = [ChatMessage(role="assistant", content=format_thoughts(store.get_thoughts()))]
    decision = await _ask_llm(store, context, extra)
    return _apply_decision(decision, store, error_source="thinking", step=step + 1)


async def _run_tool(
    name: str,
    args: Any,
    context: FlowContext
) -> ToolExecution:
    """Look up, validate and execute a tool, raising on each kind of failure."""
    tool = context.tools.lookup(name)

    if not isinstance(args, dict):
        raise ToolValidationError(
            name,
            {"type_mismatch": {"args": f"expected object got {json_type_of(args)}"}}
        )

    validation = validate(args, tool.parameters_schema)
    if not validation.valid:
        raise ToolValidationError(name, validation.violations)

    logger.info("executing_tool", tool=name)
    execution = await context.executor.execute(tool, args, timeout=context.tool_timeout)
    if not execution.ok:
        raise ToolExecutionError(execution.error, tool_name=name)
    return execution


@handles(SignalType.TOOL_CALL)
async def tool_call_handler(
    signal: Signal,
    store: ConversationStore,
    context: FlowContext
) -> HandlerResult:
    """Look up, validate and run the requested tool."""
    data = signal.data if isinstance(signal.data, dict) else {}
    name = str(data.get("name", ""))
    args = data.get("args") or {}

    try:
        execution = await _run_tool(name, args, context)
    except (ToolNotFoundError, ToolValidationError, ToolExecutionError) as e:
        details: dict[str, Any] = {"tool": name, "args": args}
        if isinstance(e, ToolValidationError):
            details["violations"] = e.violations
        return HandlerResult.emit(signals.error(str(e), e.kind.value, details), store)

    store.add_tool_call(name, args, execution.result)
    return HandlerResult.emit(
        signals.tool_result(
            name,
            execution.result,
            meta={"args": args, "execution_time_ms": execution.execution_time_ms}
        ),
        store
    )


@handles(SignalType.TOOL_RESULT)
async def tool_result_handler(
    signal: Signal,
    store: ConversationStore,
    context: FlowContext
) -> HandlerResult:
    """Put the tool result in the transcript and ask the provider what's next."""
    name = signal.data["name"]
    result = signal.data["result"]
    logger.info("processing_tool_result", tool=name)

    store.add_function_result(name, result)

    decision = await _ask_llm(store, context)
    return _apply_decision(decision, store, error_source="tool_result")


@handles(SignalType.TASK_STATE)
async def task_handler(
    signal: Signal,
    store: ConversationStore,
    context: FlowContext
) -> HandlerResult:
    """Update the matching task record. Never produces a signal."""
    store.update_task_state(signal.data["task_id"], signal.data["state"])
    return HandlerResult.skip(store)


@handles(SignalType.RESPONSE)
async def response_handler(
    signal: Signal,
    store: ConversationStore,
    context: FlowContext
) -> HandlerResult:
    """Format the final response and end the pipeline."""
    content = signal.data
    formatter = context.response_formatter

    if formatter is not None:
        try:
            content = formatter(content)
        except Exception as e:
            logger.warning("response_formatter_failed", error=str(e))

    return HandlerResult.halt(signals.response(content, meta=signal.meta), store)


# source -> (category, error kind)
_ERROR_SOURCES: dict[str, tuple[str, ErrorKind]] = {
    "llm_call": ("llm", ErrorKind.LLM_ERROR),
    "thinking": ("llm", ErrorKind.LLM_ERROR),
    "tool_call": ("tool", ErrorKind.EXECUTION_ERROR),
    ErrorKind.NOT_FOUND.value: ("tool", ErrorKind.NOT_FOUND),
    ErrorKind.VALIDATION_ERROR.value: ("tool", ErrorKind.VALIDATION_ERROR),
    ErrorKind.EXECUTION_ERROR.value: ("tool", ErrorKind.EXECUTION_ERROR),
    "tool_result": ("tool_result", ErrorKind.LLM_ERROR),
    ErrorKind.TIMEOUT.value: ("timeout", ErrorKind.TIMEOUT),
}

_APOLOGIES = {
    "llm": "I'm sorry, I'm having trouble processing your request: {message}",
    "tool": "I'm sorry, I tried to use a tool but encountered an error: {message}",
    "tool_result": "I'm sorry, I had trouble working with a tool result: {message}",
    "timeout": "I'm sorry, I ran out of time while working on your request: {message}",
    "generic": "I'm sorry, an error occurred: {message}",
}


def classify_error(source: str) -> tuple[str, ErrorKind]:
    """Map an error source onto its category and taxonomy kind."""
    return _ERROR_SOURCES.get(source, ("generic", ErrorKind.UNKNOWN))


@handles(SignalType.ERROR)
async def error_handler(
    signal: Signal,
    store: ConversationStore,
    context: FlowContext
) -> HandlerResult:
    """Log the error and turn it into an apologetic response."""
    message = str(signal.data.get("message", ""))
    source = str(signal.data.get("source", "unknown"))
    details = signal.data.get("context") or {}

    category, kind = classify_error(source)
    logger.error("agent_error", source=source, kind=kind.value, message=message)

    store.add_error(kind.value, message, source=source, context=details)

    reply = _APOLOGIES[category].format(message=message)
    store.add_message("assistant", reply)

    return HandlerResult.emit(
        signals.response(reply, meta={"recovered_from": source, "error_kind": kind.value}),
        store
    )


DEFAULT_HANDLERS: tuple[Handler, ...] = (
    message_handler,
    thinking_handler,
    tool_call_handler,
    tool_result_handler,
    task_handler,
    response_handler,
    error_handler,
)
