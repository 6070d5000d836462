"""Data models for long-running tasks."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from ..signals import Signal

TERMINAL_STAGES = ("completed", "error")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StageResult:
    """Outcome of one stage.

    Attributes:
        result: Value stored under the stage name in ``stage_results``
        next_stage: Name of the stage to run next (None: declared order)
    """

    result: Any = None
    next_stage: str | None = None


StageRunner = Callable[[Signal, "TaskRecord"], Awaitable[StageResult | Any]]


@dataclass(frozen=True)
class TaskStage:
    """One checkpointed unit of work.

    Attributes:
        name: Unique stage name within a task
        run: ``async (signal, record) -> StageResult | Any``
        timeout: Seconds allowed for this stage (None: only the task timeout applies)
    """

    name: str
    run: StageRunner
    timeout: float | None = None


class TaskFailure(BaseModel):
    stage: str
    message: str


class TaskRecord(BaseModel):
    """State machine record of a task.

    ``stage`` moves from ``starting`` through the stage names to
    ``completed`` or ``error``.
    """

    id: str
    params: dict[str, Any] = Field(default_factory=dict)
    stage: str = "starting"
    status: Literal["starting", "running", "completed", "error"] = "starting"
    recovery_points: list[str] = Field(default_factory=list)
    stage_results: dict[str, Any] = Field(default_factory=dict)
    stage_timings: dict[str, float] = Field(
        default_factory=dict,
        description="Milliseconds spent per stage"
    )
    error: TaskFailure | None = None
    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    @property
    def duration_ms(self) -> float | None:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds() * 1000


class TaskReport(BaseModel):
    """Final outcome of a task.

    Attributes:
        task_id: Task identifier
        status: ``completed`` or ``error``
        payload: Last stage result, or the error message
        record: Full task record
    """

    task_id: str
    status: Literal["completed", "error"]
    payload: Any = None
    record: TaskRecord

    @property
    def ok(self) -> bool:
        return self.status == "completed"
