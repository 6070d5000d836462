from .base import LLMProvider
from .decisions import parse_decision
from .factory import create_llm_provider
from .models import ChatMessage, Decision, LLMResponse, LLMToolCall, UsageSummary
from .providers import AnthropicProvider, MockProvider, OpenAIProvider, ScriptedProvider

__all__ = [
    "AnthropicProvider",
    "ChatMessage",
    "Decision",
    "LLMProvider",
    "LLMResponse",
    "LLMToolCall",
    "MockProvider",
    "OpenAIProvider",
    "ScriptedProvider",
    "UsageSummary",
    "create_llm_provider",
    "parse_decision",
]
