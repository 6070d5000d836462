"""Flow engine: runs signals through the handler set until a halt."""

import asyncio
import time
from collections.abc import Sequence

import structlog

from .. import signals
from ..errors import FlowTimeoutError
from ..signals import Signal, SignalType
from ..store import ConversationStore, store_lock
from .handlers import DEFAULT_HANDLERS
from .models import Directive, FlowContext, FlowResult, Handler

logger = structlog.get_logger(__name__)

FALLBACK_RESPONSE = "I'm sorry, something went wrong while handling an error."


class FlowEngine:
    """Composes handlers into a bounded re-entry loop.

    For every signal the handlers run in order. ``SKIP`` passes the signal
    on, ``EMIT`` restarts the pipeline with the emitted signal and ``HALT``
    ends processing. Each emitted signal consumes one step of the budget.

    A handler that raises is rolled back to the store snapshot taken before
    it ran and its exception becomes an ``error`` signal. Exceeding the step
    budget or the timeout halts with an ``error`` signal of source
    ``timeout``.

    The store's write lock (``store_lock``) is held for the whole call, so
    other writers of the same store wait until processing ends.

    Example:
        >>> engine = FlowEngine(FlowContext(llm=MockProvider()))
        >>> result = await engine.process(signals.user_message("hi"), store)
        >>> result.content
    """

    def __init__(
        self,
        context: FlowContext,
        handlers: Sequence[Handler] | None = None,
        max_steps: int = 20,
        timeout: float | None = None
    ):
        self.context = context
        self.handlers: list[Handler] = list(handlers if handlers is not None else DEFAULT_HANDLERS)
        self.max_steps = max_steps
        self.timeout = timeout

    async def process(
        self,
        signal: Signal,
        store: ConversationStore,
        *,
        max_steps: int | None = None,
        timeout: float | None = None
    ) -> FlowResult:
        """Process one input signal to a terminal result.

        Args:
            signal: The input signal (usually a user message)
            store: Conversation state, mutated in place
            max_steps: Maximum number of emitted signals (default: engine's)
            timeout: Wall-clock limit in seconds (default: engine's)

        Returns:
            FlowResult with a HALT directive. Never raises for handler faults.
        """
        budget = self.max_steps if max_steps is None else max_steps
        limit = self.timeout if timeout is None else timeout
        progress = {"steps": 0}

        async with store_lock(store):
            started = time.monotonic()
            try:
                result = await asyncio.wait_for(
                    self._run(signal, store, budget, progress, started),
                    timeout=limit
                )
            except asyncio.TimeoutError:
                message = f"Processing timed out after {limit} seconds"
                logger.warning("flow_timeout", timeout=limit, steps=progress["steps"])
                result = self._abort(
                    store, FlowTimeoutError(message), progress["steps"], started, {"timeout": limit}
                )

        return result

    __call__ = process

    async def _run(
        self,
        signal: Signal,
        store: ConversationStore,
        budget: int,
        progress: dict[str, int],
        started: float
    ) -> FlowResult:
        current = signal

        while True:
            directive, produced, store = await self._dispatch(current, store)

            if directive == Directive.HALT:
                logger.debug("flow_halted", signal_type=produced.type.value, steps=progress["steps"])
                return FlowResult(
                    Directive.HALT,
                    produced,
                    store,
                    steps=progress["steps"],
                    elapsed=time.monotonic() - started
                )

            if directive == Directive.SKIP:
                logger.warning("unhandled_signal", signal_type=current.type.value)
                return FlowResult(
                    Directive.HALT,
                    signals.response(
                        f"Unhandled signal: {current.type.value}",
                        meta={"unhandled": True}
                    ),
                    store,
                    steps=progress["steps"],
                    elapsed=time.monotonic() - started
                )

            progress["steps"] += 1
            if progress["steps"] > budget:
                message = f"Exceeded maximum steps ({budget})"
                logger.warning("flow_step_budget_exceeded", max_steps=budget)
                return self._abort(
                    store, FlowTimeoutError(message), progress["steps"] - 1, started, {"max_steps": budget}
                )

            logger.debug(
                "signal_emitted",
                signal_type=produced.type.value,
                step=progress["steps"]
            )
            current = produced

    async def _dispatch(
        self,
        signal: Signal,
        store: ConversationStore
    ) -> tuple[Directive, Signal | None, ConversationStore]:
        """Run the handler chain once for ``signal``."""
        for handler in self.handlers:
            bound = getattr(handler, "signal_type", None)
            if bound is not None and bound != signal.type:
                continue

            name = getattr(handler, "__name__", repr(handler))
            checkpoint = store.snapshot()

            try:
                result = await handler(signal, store, self.context)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception("handler_failed", handler=name, signal_type=signal.type.value)
                store.restore(checkpoint)

                if signal.type == SignalType.ERROR:
                    return Directive.HALT, signals.response(
                        FALLBACK_RESPONSE, meta={"handler_failure": name}
                    ), store

                return Directive.EMIT, signals.error(
                    str(e) or type(e).__name__,
                    "handler",
                    context={"handler": name, "signal_type": signal.type.value}
                ), store

            store = result.store
            if result.directive != Directive.SKIP:
                return result.directive, result.signal, store

        return Directive.SKIP, None, store

    def _abort(
        self,
        store: ConversationStore,
        error: FlowTimeoutError,
        steps: int,
        started: float,
        details: dict
    ) -> FlowResult:
        kind = error.kind.value
        store.add_error(kind, str(error), source=kind, context=details)
        return FlowResult(
            Directive.HALT,
            signals.error(str(error), kind, details),
            store,
            steps=steps,
            elapsed=time.monotonic() - started
        )
