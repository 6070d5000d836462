"""Task manager: runs multi-stage tasks with checkpoints."""

import asyncio
import inspect
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import structlog

from .. import signals
from ..errors import TaskControlUnsupportedError, TaskError
from ..signals import Signal
from ..store import ConversationStore, StoreActor, store_lock
from .models import StageResult, TaskFailure, TaskRecord, TaskReport, TaskStage

logger = structlog.get_logger(__name__)


class TaskManager:
    """Runs tasks made of named stages.

    Each stage runs with its own timeout inside the task's overall timeout.
    A successful stage stores its result under ``stage_results[name]`` and
    becomes a recovery point; the first failing stage moves the task to
    ``error``. Every state change is mirrored into the conversation store,
    through a ``StoreActor`` when one is given, and under the store's
    ``store_lock`` otherwise.

    Example:
        >>> manager = TaskManager(store)
        >>> report = await manager.start(stages, {"symbol": "ACME"}, run_async=False)
        >>> report.status
        'completed'
    """

    def __init__(
        self,
        store: ConversationStore | StoreActor | None = None,
        max_transitions: int = 100
    ):
        """Initialize the manager.

        Args:
            store: Conversation store (or actor owning one) to mirror task state into
            max_transitions: Upper bound on stage runs per task, guards ``next_stage`` cycles
        """
        self._store = store
        self._max_transitions = max_transitions
        self._records: dict[str, TaskRecord] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self.reports: asyncio.Queue[TaskReport] = asyncio.Queue()

    async def start(
        self,
        stages: Sequence[TaskStage],
        params: dict[str, Any] | None = None,
        *,
        run_async: bool = True,
        timeout: float = 300.0,
        task_type: str | None = None
    ) -> TaskReport | tuple[str, Signal]:
        """Start a task.

        Args:
            stages: Stages in declared order
            params: Task parameters, visible to stages as ``record.params``
            run_async: Run in the background and report on ``reports``
            timeout: Seconds allowed for the whole task
            task_type: Optional label stored with the mirrored task record

        Returns:
            ``TaskReport`` when synchronous; otherwise ``(task_id, signal)``
            where ``signal`` is a ``task_state`` signal with state ``running``.

        Raises:
            ValueError: If there are no stages or stage names are not unique
        """
        if not stages:
            raise ValueError("A task needs at least one stage")
        names = [stage.name for stage in stages]
        if len(set(names)) != len(names):
            raise ValueError(f"Stage names must be unique: {names}")

        task_id = f"task_{uuid4().hex[:12]}"
        record = TaskRecord(id=task_id, params=dict(params or {}))
        self._records[task_id] = record

        mirrored: dict[str, Any] = {"id": task_id, "status": "starting", "stages": names}
        if task_type:
            mirrored["type"] = task_type
        await self._mirror(ConversationStore.add_task, mirrored)
        logger.info("task_started", task_id=task_id, stages=names, run_async=run_async)

        if not run_async:
            return await self._execute(record, list(stages), timeout)

        self._tasks[task_id] = asyncio.create_task(
            self._run_and_report(record, list(stages), timeout),
            name=task_id
        )
        return task_id, signals.task_state(task_id, "running", meta={"async": True})

    async def wait(self, task_id: str) -> TaskReport:
        """Wait for a background task and return its report.

        The report is still put on ``reports``.

        Raises:
            KeyError: If no background task has this id
        """
        return await self._tasks[task_id]

    def get_record(self, task_id: str) -> TaskRecord | None:
        return self._records.get(task_id)

    def get_stats(self, task_id: str) -> dict[str, Any] | None:
        """Timings and progress of a task, or None for unknown ids."""
        record = self._records.get(task_id)
        if record is None:
            return None

        return {
            "task_id": task_id,
            "status": record.status,
            "stage": record.stage,
            "started_at": record.started_at,
            "finished_at": record.finished_at,
            "duration_ms": record.duration_ms,
            "stage_timings": dict(record.stage_timings),
            "recovery_points": list(record.recovery_points),
        }

    def cancel(self, task_id: str) -> None:
        raise TaskControlUnsupportedError("cancel", task_id)

    def pause(self, task_id: str) -> None:
        raise TaskControlUnsupportedError("pause", task_id)

    def resume(self, task_id: str) -> None:
        raise TaskControlUnsupportedError("resume", task_id)

    async def _run_and_report(
        self,
        record: TaskRecord,
        stages: list[TaskStage],
        timeout: float
    ) -> TaskReport:
        try:
            report = await self._execute(record, stages, timeout)
        except Exception as e:
            logger.exception("task_crashed", task_id=record.id)
            report = await self._fail(record, record.stage, str(e) or type(e).__name__)

        await self.reports.put(report)
        return report

    async def _execute(
        self,
        record: TaskRecord,
        stages: list[TaskStage],
        timeout: float
    ) -> TaskReport:
        try:
            return await asyncio.wait_for(self._run_stages(record, stages), timeout=timeout)
        except asyncio.TimeoutError:
            return await self._fail(record, record.stage, f"Task timed out after {timeout} seconds")
        except TaskError as e:
            return await self._fail(record, e.stage or record.stage, str(e))

    async def _run_stages(self, record: TaskRecord, stages: list[TaskStage]) -> TaskReport:
        by_name = {stage.name: index for index, stage in enumerate(stages)}
        index: int | None = 0
        payload: Any = None
        transitions = 0

        while index is not None:
            transitions += 1
            if transitions > self._max_transitions:
                raise TaskError(
                    f"Exceeded maximum stage transitions ({self._max_transitions})",
                    stage=record.stage
                )

            stage = stages[index]
            record.stage = stage.name
            record.status = "running"
            await self._mirror(ConversationStore.update_task_state, record.id, f"running:{stage.name}")

            outcome = await self._run_stage(stage, record)
            payload = outcome.result
            record.stage_results[stage.name] = payload
            record.recovery_points.append(stage.name)
            logger.debug("task_stage_completed", task_id=record.id, stage=stage.name)

            if outcome.next_stage is None:
                index = index + 1 if index + 1 < len(stages) else None
            elif outcome.next_stage in by_name:
                index = by_name[outcome.next_stage]
            else:
                raise TaskError(f"Unknown next stage: {outcome.next_stage}", stage=stage.name)

        record.stage = "completed"
        record.status = "completed"
        record.finished_at = datetime.now(timezone.utc)
        await self._mirror(ConversationStore.update_task_state, record.id, "completed")
        logger.info("task_completed", task_id=record.id, duration_ms=record.duration_ms)

        return TaskReport(task_id=record.id, status="completed", payload=payload, record=record)

    async def _run_stage(self, stage: TaskStage, record: TaskRecord) -> StageResult:
        signal = signals.task_state(
            record.id,
            "running",
            meta={"stage": stage.name, "params": record.params}
        )
        started = time.monotonic()

        try:
            outcome = stage.run(signal, record)
            if inspect.isawaitable(outcome):
                outcome = await asyncio.wait_for(outcome, timeout=stage.timeout)
        except asyncio.TimeoutError:
            raise TaskError(
                f"Stage '{stage.name}' timed out after {stage.timeout} seconds",
                stage=stage.name
            ) from None
        except TaskError as e:
            e.stage = e.stage or stage.name
            raise
        except Exception as e:
            raise TaskError(str(e) or type(e).__name__, stage=stage.name) from e
        finally:
            record.stage_timings[stage.name] = (time.monotonic() - started) * 1000

        if isinstance(outcome, StageResult):
            return outcome
        return StageResult(result=outcome)

    async def _fail(self, record: TaskRecord, stage: str, message: str) -> TaskReport:
        logger.warning("task_failed", task_id=record.id, stage=stage, error=message)
        record.error = TaskFailure(stage=stage, message=message)
        record.stage = "error"
        record.status = "error"
        record.finished_at = datetime.now(timezone.utc)
        await self._mirror(ConversationStore.update_task_state, record.id, "error")

        return TaskReport(task_id=record.id, status="error", payload=message, record=record)

    async def _mirror(self, operation: Callable[..., Any], *args: Any) -> None:
        if self._store is None:
            return
        if isinstance(self._store, StoreActor):
            await self._store.call(operation, *args)
        else:
            async with store_lock(self._store):
                operation(self._store, *args)
