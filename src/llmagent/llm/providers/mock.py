"""Offline providers.

``MockProvider`` is a deterministic rule-based stand-in for a real model,
handy for demos and the CLI without API keys. ``ScriptedProvider`` replays
a fixed list of answers and records every request, for tests.
"""

import json
import re
from collections.abc import Callable, Iterable
from typing import Any

from ...errors import LLMError
from ...prompts import THOUGHTS_HEADER
from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse, LLMToolCall

_ARITHMETIC = re.compile(r"[\d.(][\d.\s()]*(?:[-+*/%]+[\s(]*[\d.]+[\d.\s()]*)+")

_CANNED_ANSWERS = {
    "what is the capital of france?": "The capital of France is Paris.",
    "how are you?": "I'm a mock LLM, but I'm doing well! How can I help you today?",
}


def _tool_names(tools: list[dict[str, Any]] | None) -> set[str]:
    return {tool["name"] for tool in tools or []}


def _last_user_content(messages: list[ChatMessage]) -> str:
    for msg in reversed(messages):
        if msg.role == "user":
            return msg.content
    return ""


class MockProvider(LLMProvider):
    """Rule-based provider.

    Rules, in order:
    - after a function result: answer from the result
    - after a thoughts context message: answer from the last thought
    - arithmetic in the user message and a ``calculator`` tool: call it
    - "time" in the user message and a ``current_time`` tool: call it
    - a question: canned answer
    - anything else: think about the request first
    """

    def __init__(self, model: str = "mock", **_: Any):
        self._model = model
        self.calls = 0

    @property
    def model(self) -> str:
        return self._model

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        self.calls += 1
        usage = {"prompt_tokens": sum(len(m.content) for m in messages) // 4,
                 "completion_tokens": 0, "total_tokens": 0}
        last = messages[-1] if messages else None

        if last is not None and last.role == "function":
            return self._reply(self._answer_from_result(last.content), usage)

        if last is not None and last.role == "assistant" and last.content.startswith(THOUGHTS_HEADER):
            thoughts = [line for line in last.content.splitlines()[1:] if line[:1].isdigit()]
            basis = thoughts[-1].split(". ", 1)[-1] if thoughts else "my reasoning"
            return self._reply(f"Having considered it ({basis}), here is my answer.", usage)

        text = _last_user_content(messages)
        names = _tool_names(tools)

        match = _ARITHMETIC.search(text)
        if match and "calculator" in names:
            return LLMResponse(
                tool_calls=[LLMToolCall(
                    id="mock-call-1",
                    name="calculator",
                    arguments={"expression": match.group(0).strip()}
                )],
                model=self._model,
                usage=usage
            )

        if "time" in text.lower() and "current_time" in names:
            return LLMResponse(
                tool_calls=[LLMToolCall(id="mock-call-1", name="current_time")],
                model=self._model,
                usage=usage
            )

        if text.strip().endswith("?"):
            answer = _CANNED_ANSWERS.get(
                text.strip().lower(),
                "I don't have a specific answer for that question in my mock responses."
            )
            return self._reply(answer, usage)

        thought = json.dumps({
            "kind": "thinking",
            "content": f"I need to process the user's request: {text}"
        })
        return self._reply(thought, usage)

    def _answer_from_result(self, content: str) -> str:
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            return f"Here is what I found: {content}"

        if isinstance(data, dict):
            if "error" in data:
                return f"The tool reported an error: {data['error']}"
            if "result" in data:
                return f"The result is {data['result']}."
        return f"Here is what I found: {json.dumps(data)}"

    def _reply(self, content: str, usage: dict[str, int]) -> LLMResponse:
        return LLMResponse(content=content, model=self._model, usage=usage)

    async def close(self) -> None:
        """Nothing to close."""


ScriptStep = LLMResponse | str | Exception | Callable[[list[ChatMessage]], LLMResponse]


class ScriptedProvider(LLMProvider):
    """Replays scripted answers in order and records requests.

    Each step is an ``LLMResponse``, a plain string (content), an exception
    instance (raised), or a callable receiving the messages.
    """

    def __init__(self, steps: Iterable[ScriptStep], model: str = "scripted"):
        self._steps = list(steps)
        self._model = model
        self.requests: list[dict[str, Any]] = []

    @property
    def model(self) -> str:
        return self._model

    @property
    def remaining(self) -> int:
        return len(self._steps)

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        self.requests.append({"messages": list(messages), "tools": tools, "options": kwargs})

        if not self._steps:
            raise LLMError("Scripted provider has no answers left")

        step = self._steps.pop(0)
        if isinstance(step, Exception):
            raise step
        if isinstance(step, LLMResponse):
            return step
        if isinstance(step, str):
            return LLMResponse(content=step, model=self._model)
        return step(messages)

    async def close(self) -> None:
        """Nothing to close."""
