"""Ready-made stage types."""

from collections.abc import Callable, Sequence
from typing import Any

from .. import signals
from ..errors import TaskError
from ..flows import FlowEngine, task_flow
from ..flows.combinators import Step
from ..signals import Signal, SignalType
from ..store import ConversationStore
from .models import StageResult, TaskRecord, TaskStage


def flow_stage(
    name: str,
    engine: FlowEngine,
    store: ConversationStore,
    prompt: str | Callable[[TaskRecord], str],
    timeout: float | None = None
) -> TaskStage:
    """A stage that runs one engine pass over a user message.

    ``prompt`` is either a format string filled from the task params or a
    callable receiving the task record. A recovered error (the engine
    answered with an apology) fails the stage. The pass holds the store's
    write lock, so it waits for a foreground pass on the same store.
    """

    async def run(signal: Signal, record: TaskRecord) -> StageResult:
        text = prompt(record) if callable(prompt) else prompt.format(**record.params)
        result = await engine.process(signals.user_message(text), store)

        if result.signal.type == SignalType.ERROR:
            raise TaskError(result.signal.data["message"], stage=name)
        if "recovered_from" in result.signal.meta:
            raise TaskError(str(result.content), stage=name)

        return StageResult(result.content)

    return TaskStage(name, run, timeout)


def primitive_stage(
    name: str,
    steps: Sequence[Step],
    timeout: float | None = None
) -> TaskStage:
    """A stage that runs primitive steps through ``task_flow``.

    The steps receive the task params merged with earlier stage results as
    their state.
    """
    flow = task_flow(steps)

    async def run(signal: Signal, record: TaskRecord) -> Any:
        state = {**record.params, "stage_results": dict(record.stage_results)}
        result = await flow(signal, state)

        if result.signal.type == SignalType.ERROR:
            raise TaskError(result.signal.data["message"], stage=name)
        return result.signal.data

    return TaskStage(name, run, timeout)
