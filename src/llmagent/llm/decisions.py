"""Translate a provider answer into the engine's next action.

Precedence:
1. native tool calls on the response -> ``tool_call`` (the first one)
2. a JSON object in the text:
   - ``{"tool_name": ..., "arguments": {...}}`` -> ``tool_call``
   - ``{"kind": "thinking"|"response", "content": ...}`` -> that kind
3. any other non-empty text -> ``response``
4. nothing at all -> ``error``
"""

import json
import re
from typing import Any

import structlog

from .models import Decision, LLMResponse

logger = structlog.get_logger(__name__)

# First-level JSON objects, allowing one level of nesting
_JSON_PATTERN = re.compile(r'\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}')

_KIND_ALIASES = {
    "thinking": "thinking",
    "thought": "thinking",
    "next_step": "thinking",
    "response": "response",
    "final_result": "response",
    "answer": "response",
}


def _json_objects(content: str) -> list[dict[str, Any]]:
    if "{" not in content or "}" not in content:
        return []

    objects = []
    for match in _JSON_PATTERN.findall(content):
        try:
            data = json.loads(match)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            objects.append(data)
    return objects


def parse_decision(response: LLMResponse) -> Decision:
    """Derive exactly one next action from a provider response."""
    if response.tool_calls:
        call = response.tool_calls[0]
        if len(response.tool_calls) > 1:
            logger.info(
                "extra_tool_calls_ignored",
                used=call.name,
                ignored=[c.name for c in response.tool_calls[1:]],
            )
        return Decision(kind="tool_call", tool_name=call.name, arguments=call.arguments)

    content = (response.content or "").strip()

    for data in _json_objects(content):
        if "tool_name" in data and isinstance(data.get("arguments", {}), dict):
            return Decision(
                kind="tool_call",
                tool_name=str(data["tool_name"]),
                arguments=data.get("arguments", {})
            )

        kind = _KIND_ALIASES.get(str(data.get("kind", "")).lower())
        if kind and "content" in data:
            return Decision(kind=kind, content=str(data["content"]))

    if content:
        return Decision(kind="response", content=content)

    return Decision(kind="error", content="Provider returned neither content nor tool calls")
