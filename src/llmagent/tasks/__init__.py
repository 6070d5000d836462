"""Long-running multi-stage tasks."""

from .manager import TaskManager
from .models import StageResult, TaskFailure, TaskRecord, TaskReport, TaskStage
from .stages import flow_stage, primitive_stage

__all__ = [
    "StageResult",
    "TaskFailure",
    "TaskManager",
    "TaskRecord",
    "TaskReport",
    "TaskStage",
    "flow_stage",
    "primitive_stage",
]
