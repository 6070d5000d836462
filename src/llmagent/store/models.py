"""Data models for the per-conversation store.

The store is the structured representation of one conversation:
transcript, scratch thoughts, tool audit trail, tasks, preferences and
errors. It is serializable to JSON so it can be handed to providers and
persisted by any backend.
"""

import copy
import json
from datetime import datetime, timezone
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant", "function"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _display(value: Any) -> str:
    try:
        return repr(value)
    except ValueError:
        return f"<{type(value).__name__} too large to display>"


class HistoryEntry(BaseModel):
    """One transcript entry."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    name: str | None = Field(default=None, description="Function name for function entries")

    def to_llm_dict(self) -> dict[str, str]:
        data = {"role": self.role, "content": self.content}
        if self.name is not None:
            data["name"] = self.name
        return data


class ToolCallRecord(BaseModel):
    """Audit record of one tool execution."""

    name: str
    args: dict[str, Any] = Field(default_factory=dict)
    result: Any = None
    timestamp: datetime = Field(default_factory=_utcnow)


class TaskStatusRecord(BaseModel):
    """Status of a task tracked by the conversation.

    Extra fields (task type, description, ...) are kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    status: str = "starting"
    status_history: list[str] = Field(default_factory=list)


class ErrorRecord(BaseModel):
    """Entry of the append-only error log."""

    kind: str
    message: str
    timestamp: datetime = Field(default_factory=_utcnow)
    source: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)


class ConversationStore(BaseModel):
    """State of a single conversation.

    Every mutator returns the store itself so calls can be chained.
    None of the operations raise for well-typed input.
    """

    conversation_id: str = Field(default_factory=lambda: str(uuid4()))
    history: list[HistoryEntry] = Field(default_factory=list)
    thoughts: list[str] = Field(default_factory=list)
    tool_calls: list[ToolCallRecord] = Field(default_factory=list)
    current_tasks: list[TaskStatusRecord] = Field(default_factory=list)
    preferences: dict[str, Any] = Field(default_factory=dict)
    errors: list[ErrorRecord] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def _touch(self) -> "ConversationStore":
        self.updated_at = _utcnow()
        return self

    # History

    def add_message(self, role: Role, content: str) -> "ConversationStore":
        """Append a transcript entry."""
        self.history.append(HistoryEntry(role=role, content=content))
        return self._touch()

    def add_function_result(self, function_name: str, result: Any) -> "ConversationStore":
        """Append a tool result to the transcript as a ``function`` entry.

        Results JSON cannot encode (non-string keys, oversized integers) are
        stored as their ``repr``.
        """
        if isinstance(result, str):
            content = result
        else:
            try:
                content = json.dumps(result, indent=2, default=str)
            except (TypeError, ValueError):
                content = _display(result)
        self.history.append(
            HistoryEntry(role="function", name=function_name, content=content)
        )
        return self._touch()

    def get_llm_history(self, max_length: int = 10) -> list[HistoryEntry]:
        """Return the most recent ``max_length`` entries, unchanged and in order."""
        if max_length <= 0:
            return []
        return list(self.history[-max_length:])

    def to_llm_messages(self, max_length: int | None = None) -> list[dict[str, str]]:
        """Serialize history to ``role``/``content``/``name`` dicts."""
        entries = self.history if max_length is None else self.get_llm_history(max_length)
        return [entry.to_llm_dict() for entry in entries]

    def trim_history(self, max_entries: int = 50) -> "ConversationStore":
        """Drop the oldest non-system entries beyond ``max_entries``.

        System entries are always kept; the remaining budget goes to the
        most recent other entries, in their original relative order.
        """
        if len(self.history) <= max_entries:
            return self

        system_entries = [e for e in self.history if e.role == "system"]
        keep = max(0, max_entries - len(system_entries))
        others = [e for e in self.history if e.role != "system"]
        recent = others[len(others) - keep:] if keep else []

        self.history = system_entries + recent
        return self._touch()

    # Thoughts

    def add_thought(self, thought: str) -> "ConversationStore":
        self.thoughts.append(thought)
        return self._touch()

    def get_thoughts(self) -> list[str]:
        return list(self.thoughts)

    def start_cycle(self) -> "ConversationStore":
        """Begin a new processing cycle by clearing scratch thoughts."""
        self.thoughts = []
        return self._touch()

    def prune_thoughts(self, max_count: int = 20) -> "ConversationStore":
        """Keep only the most recent ``max_count`` thoughts."""
        if len(self.thoughts) > max_count:
            self.thoughts = self.thoughts[len(self.thoughts) - max(0, max_count):]
            self._touch()
        return self

    def optimize(self, max_history: int = 50, max_thoughts: int = 20) -> "ConversationStore":
        """Trim history and prune thoughts in one go."""
        return self.trim_history(max_history).prune_thoughts(max_thoughts)

    # Tools

    def add_tool_call(self, name: str, args: dict[str, Any], result: Any) -> "ConversationStore":
        self.tool_calls.append(ToolCallRecord(name=name, args=args, result=result))
        return self._touch()

    # Tasks

    def add_task(self, task: TaskStatusRecord | dict[str, Any]) -> "ConversationStore":
        """Add a task record, replacing any record with the same id."""
        record = task if isinstance(task, TaskStatusRecord) else TaskStatusRecord(**task)
        if not record.status_history:
            record.status_history.append(record.status)

        for i, existing in enumerate(self.current_tasks):
            if existing.id == record.id:
                self.current_tasks[i] = record
                return self._touch()

        self.current_tasks.append(record)
        return self._touch()

    def get_task(self, task_id: str) -> TaskStatusRecord | None:
        for task in self.current_tasks:
            if task.id == task_id:
                return task
        return None

    def update_task_state(self, task_id: str, status: str) -> "ConversationStore":
        """Set the status of a task; unknown ids are ignored."""
        task = self.get_task(task_id)
        if task is None:
            return self

        task.status = status
        task.status_history.append(status)
        return self._touch()

    # Preferences

    def set_preferences(self, preferences: dict[str, Any]) -> "ConversationStore":
        """Merge preferences, last write wins."""
        self.preferences = {**self.preferences, **preferences}
        return self._touch()

    def get_preference(self, key: str, default: Any = None) -> Any:
        return self.preferences.get(key, default)

    def get_preferences(self) -> dict[str, Any]:
        return dict(self.preferences)

    # Errors

    def add_error(
        self,
        kind: str,
        message: str,
        source: str | None = None,
        context: dict[str, Any] | None = None
    ) -> "ConversationStore":
        """Append to the error log."""
        self.errors.append(
            ErrorRecord(kind=kind, message=message, source=source, context=context or {})
        )
        return self._touch()

    # Snapshots

    def snapshot(self) -> "ConversationStore":
        """Deep copy of the current state."""
        return self.model_copy(deep=True)

    def restore(self, snapshot: "ConversationStore") -> "ConversationStore":
        """Reset this store in place to a previous snapshot."""
        for field_name in type(self).model_fields:
            setattr(self, field_name, copy.deepcopy(getattr(snapshot, field_name)))
        return self
