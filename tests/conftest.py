"""Pytest configuration and shared fixtures."""
import logging
import os

import pytest
import structlog

from llmagent.config import AgentConfig
from llmagent.flows import FlowContext, FlowEngine
from llmagent.llm import LLMResponse, LLMToolCall, MockProvider
from llmagent.store import ConversationStore
from llmagent.tools import ToolRegistry, default_tools

_ENV_VARS = (
    "LLM_PROVIDER",
    "OPENAI_API_KEY",
    "OPENAI_CHAT_MODEL",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_MODEL",
    "LLMAGENT_MAX_STEPS",
    "LLMAGENT_TIMEOUT",
    "LLMAGENT_HISTORY_WINDOW",
    "LLMAGENT_MAX_THINKING_STEPS",
    "LLMAGENT_LOG_LEVEL",
    "LLMAGENT_LOG_FORMAT",
    "LLMAGENT_STORE_BACKEND",
    "LLMAGENT_STORE_PATH",
)


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging configuration done by a test."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.root.setLevel(logging.WARNING)


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "openai": os.getenv("OPENAI_API_KEY"),
        "anthropic": os.getenv("ANTHROPIC_API_KEY")
    }


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the configuration reads."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def config():
    """Return a configuration independent of the environment."""
    return AgentConfig()


@pytest.fixture
def store():
    """Return a store seeded with a system prompt."""
    return ConversationStore(conversation_id="conv-test").add_message(
        "system", "You are a helpful assistant."
    )


@pytest.fixture
def registry():
    """Return a registry with the built-in demo tools."""
    return ToolRegistry(default_tools())


@pytest.fixture
def tool_call_response():
    """Return a builder for provider responses carrying one native tool call."""

    def _build(name, arguments=None):
        return LLMResponse(
            tool_calls=[LLMToolCall(id="call-1", name=name, arguments=arguments or {})],
            model="scripted"
        )

    return _build


@pytest.fixture
def make_engine(registry):
    """Return a factory for engines around a given provider."""

    def _make(llm=None, tools=None, **options):
        context = FlowContext(
            llm=llm or MockProvider(),
            tools=registry if tools is None else tools,
            history_window=options.pop("history_window", 10),
            max_thinking_steps=options.pop("max_thinking_steps", 5),
            response_formatter=options.pop("response_formatter", None),
        )
        return FlowEngine(context, **options)

    return _make
