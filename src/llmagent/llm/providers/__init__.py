from .anthropic import AnthropicProvider
from .mock import MockProvider, ScriptedProvider
from .openai import OpenAIProvider

__all__ = ["AnthropicProvider", "MockProvider", "OpenAIProvider", "ScriptedProvider"]
