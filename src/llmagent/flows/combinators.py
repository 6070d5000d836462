"""Higher-order helpers for composing flows.

A flow is any ``async (signal, state) -> FlowResult`` callable;
``FlowEngine.process`` is one. The helpers here build flows out of plain
steps and wrap existing flows.
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import structlog

from .. import signals
from ..signals import Signal
from .models import Directive, Flow, FlowResult

logger = structlog.get_logger(__name__)

# A primitive step returns ``(result, new_state)`` and raises on failure.
Step = Callable[[Signal, Any], Awaitable[tuple[Any, Any]]]
Middleware = Callable[[Signal, Any, Flow], Awaitable[FlowResult]]


def task_flow(steps: Sequence[Step]) -> Flow:
    """Run primitive steps in sequence, threading state through them.

    The last step's result is emitted (wrapped in a ``response`` signal
    unless it already is a signal). The first failing step stops the run
    and emits an ``error`` signal with source ``task_execution``; the state
    given to the flow is returned unchanged in that case.

    Raises:
        ValueError: If ``steps`` is empty
    """
    if not steps:
        raise ValueError("task_flow requires at least one step")
    steps = list(steps)

    async def flow(signal: Signal, state: Any) -> FlowResult:
        current = state
        result: Any = None

        for index, step in enumerate(steps):
            try:
                result, current = await step(signal, current)
            except Exception as e:
                logger.warning("task_step_failed", step=index, error=str(e))
                return FlowResult(
                    Directive.EMIT,
                    signals.error(str(e) or type(e).__name__, "task_execution", {"step": index}),
                    state
                )

        if not isinstance(result, Signal):
            result = signals.response(result)
        return FlowResult(Directive.EMIT, result, current, steps=len(steps))

    return flow


def batch_processing(items: Sequence[Any], handler: Flow) -> Flow:
    """Apply ``handler`` to one item per invocation.

    The state is a mapping. The batch position lives under ``"batch"`` and
    the handler sees the item under ``"current_item"``. Once every item is
    processed the flow halts with the incoming signal.
    """
    items = list(items)

    async def flow(signal: Signal, state: dict[str, Any]) -> FlowResult:
        batch = state.get("batch") or {"items": items, "index": 0}

        if batch["index"] >= len(batch["items"]):
            return FlowResult(Directive.HALT, signal, state)

        item = batch["items"][batch["index"]]
        result = await handler(signal, {**state, "current_item": item})

        final_state = dict(result.state)
        final_state.pop("current_item", None)
        final_state["batch"] = {**batch, "index": batch["index"] + 1}

        return FlowResult(result.directive, result.signal, final_state, result.steps, result.elapsed)

    return flow


def map_flow(flow: Flow, transform: Callable[[FlowResult], FlowResult]) -> Flow:
    """Derive a flow whose results pass through ``transform``."""

    async def mapped(signal: Signal, state: Any) -> FlowResult:
        return transform(await flow(signal, state))

    return mapped


def with_middleware(flow: Flow, middleware: Middleware) -> Flow:
    """Wrap a flow with middleware.

    The middleware receives ``(signal, state, flow)`` and decides whether
    and how to call the wrapped flow, so it can act before and after it.
    """

    async def wrapped(signal: Signal, state: Any) -> FlowResult:
        return await middleware(signal, state, flow)

    return wrapped
