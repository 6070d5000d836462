"""Anthropic Claude LLM provider implementation.

Uses the official Anthropic Python SDK for async chat completions with
tool use.
Reference: https://github.com/anthropics/anthropic-sdk-python
"""

from typing import Any

import anthropic
from anthropic import AsyncAnthropic

from ...errors import LLMError, LLMNetworkError, LLMRateLimitError
from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse, LLMToolCall


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM provider implementation.

    Hidden design decisions:
    - Anthropic API client initialization
    - Message format conversion (system and function message handling)
    - Tool spec conversion (``input_schema``)
    - Mapping SDK exceptions onto LLMError subclasses
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            model: Default model to use (default: claude-sonnet-4-20250514)
            base_url: Optional custom API base URL
            **client_kwargs: Additional kwargs for AsyncAnthropic client
        """
        self._model = model
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
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
        """Generate a chat completion using Anthropic Claude.

        Args:
            messages: Conversation history
            tools: Tool specs offered for tool use
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate (default: 4096)
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            LLMResponse with generated content and tool calls
        """
        system_parts = []
        anthropic_messages = []

        for msg in messages:
            if msg.role == "system":
                system_parts.append(msg.content)
            elif msg.role == "function":
                anthropic_messages.append({
                    "role": "user",
                    "content": f"Result of tool '{msg.name}':\n{msg.content}"
                })
            else:
                anthropic_messages.append({"role": msg.role, "content": msg.content})

        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": anthropic_messages,
            "temperature": temperature,
            "max_tokens": max_tokens or 4096,  # Anthropic requires max_tokens
            **kwargs
        }

        if system_parts:
            request_params["system"] = "\n\n".join(system_parts)

        if tools:
            request_params["tools"] = [
                {
                    "name": tool["name"],
                    "description": tool.get("description", ""),
                    "input_schema": tool.get("parameters") or {"type": "object", "properties": {}}
                }
                for tool in tools
            ]

        try:
            response = await self._client.messages.create(**request_params)
        except anthropic.RateLimitError as e:
            raise LLMRateLimitError(str(e)) from e
        except anthropic.APIConnectionError as e:
            raise LLMNetworkError(str(e)) from e
        except anthropic.AnthropicError as e:
            raise LLMError(f"Anthropic request failed: {e}") from e

        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens
            }

        content = ""
        tool_calls = []
        for block in response.content:
            if block.type == "text":
                content += block.text
            elif block.type == "tool_use":
                tool_calls.append(LLMToolCall(
                    id=block.id,
                    name=block.name,
                    arguments=dict(block.input or {})
                ))

        return LLMResponse(
            content=content,
            tool_calls=tool_calls,
            model=response.model,
            usage=usage
        )

    async def close(self) -> None:
        """Close the Anthropic client."""
        await self._client.close()
