from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """Represents a chat message in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(
        description="Role of the message sender: 'system', 'user', 'assistant' or 'function'"
    )
    content: str = Field(description="Content of the message")
    name: str | None = Field(default=None, description="Function name for function results")


class LLMToolCall(BaseModel):
    """A tool invocation requested by the model."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class LLMResponse(BaseModel):
    """Response from an LLM provider.

    Either ``content`` is non-empty, ``tool_calls`` is non-empty, or both.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(default="", description="Generated text content")
    tool_calls: list[LLMToolCall] = Field(default_factory=list)
    model: str = Field(default="unknown", description="Model that generated the response")
    usage: dict[str, int] | None = Field(
        default=None,
        description="Token usage information"
    )


class Decision(BaseModel):
    """The next action derived from a provider answer."""

    kind: Literal["thinking", "tool_call", "response", "error"]
    content: str = ""
    tool_name: str | None = None
    arguments: dict[str, Any] = Field(default_factory=dict)


class UsageSummary(BaseModel):
    """Summary of LLM token usage across all calls.

    Attributes:
        total_calls: Total number of LLM API calls
        total_input_tokens: Total input tokens across all calls
        total_output_tokens: Total output tokens across all calls
        model_breakdown: Token usage broken down by model name
    """

    total_calls: int = Field(default=0, description="Total API calls")
    total_input_tokens: int = Field(default=0, description="Total input tokens")
    total_output_tokens: int = Field(default=0, description="Total output tokens")
    model_breakdown: dict[str, dict[str, int]] = Field(
        default_factory=dict,
        description="Usage breakdown by model"
    )

    def add_response(self, response: LLMResponse) -> None:
        """Record the usage reported on a provider response."""
        usage = response.usage or {}
        self.add_usage(
            model=response.model,
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0)
        )

    def add_usage(
        self,
        model: str,
        input_tokens: int,
        output_tokens: int
    ) -> None:
        self.total_calls += 1
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens

        breakdown = self.model_breakdown.setdefault(
            model, {"calls": 0, "input_tokens": 0, "output_tokens": 0}
        )
        breakdown["calls"] += 1
        breakdown["input_tokens"] += input_tokens
        breakdown["output_tokens"] += output_tokens
