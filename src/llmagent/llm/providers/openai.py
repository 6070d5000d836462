"""OpenAI chat completions provider with function calling."""

import json
from typing import Any

import openai
from openai import AsyncOpenAI

from ...errors import LLMError, LLMNetworkError, LLMRateLimitError
from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse, LLMToolCall


def _to_openai_messages(messages: list[ChatMessage]) -> list[dict[str, str]]:
    """Convert chat messages to Chat Completions format.

    Function results are replayed as user messages: the transcript does
    not keep the tool_call ids the ``tool`` role would require.
    """
    converted = []
    for msg in messages:
        if msg.role == "function":
            converted.append({
                "role": "user",
                "content": f"Result of tool '{msg.name}':\n{msg.content}"
            })
        else:
            converted.append({"role": msg.role, "content": msg.content})
    return converted


def _to_openai_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": tool["name"],
                "description": tool.get("description", ""),
                "parameters": tool.get("parameters") or {"type": "object", "properties": {}}
            }
        }
        for tool in tools
    ]


def _parse_arguments(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {"raw_arguments": raw}
    return parsed if isinstance(parsed, dict) else {"value": parsed}


class OpenAIProvider(LLMProvider):
    """OpenAI LLM provider implementation.

    Hidden design decisions:
    - OpenAI API client initialization
    - Message and tool spec format conversion
    - Mapping SDK exceptions onto LLMError subclasses
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model to use
            base_url: Optional custom API base URL
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

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
        """Generate a chat completion using OpenAI.

        Args:
            messages: Conversation history
            tools: Tool specs offered for function calling
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            LLMResponse with generated content and tool calls
        """
        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": _to_openai_messages(messages),
            "temperature": temperature,
            **kwargs
        }
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens
        if tools:
            request_params["tools"] = _to_openai_tools(tools)

        try:
            completion = await self._client.chat.completions.create(**request_params)
        except openai.RateLimitError as e:
            raise LLMRateLimitError(str(e)) from e
        except openai.APIConnectionError as e:
            raise LLMNetworkError(str(e)) from e
        except openai.OpenAIError as e:
            raise LLMError(f"OpenAI request failed: {e}") from e

        usage = None
        if completion.usage:
            usage = {
                "prompt_tokens": completion.usage.prompt_tokens,
                "completion_tokens": completion.usage.completion_tokens,
                "total_tokens": completion.usage.total_tokens
            }

        if not completion.choices:
            return LLMResponse(model=completion.model, usage=usage)

        message = completion.choices[0].message
        tool_calls = [
            LLMToolCall(
                id=call.id,
                name=call.function.name,
                arguments=_parse_arguments(call.function.arguments)
            )
            for call in (message.tool_calls or [])
            if getattr(call, "function", None) is not None
        ]

        return LLMResponse(
            content=message.content or "",
            tool_calls=tool_calls,
            model=completion.model,
            usage=usage
        )

    async def close(self) -> None:
        """Close the OpenAI client."""
        await self._client.close()
