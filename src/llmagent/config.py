"""Runtime configuration from environment variables.

Environment variables (a ``.env`` file in the working directory is loaded first):
    LLM_PROVIDER: Provider type (openai, anthropic, mock; default: mock)
    OPENAI_API_KEY: OpenAI API key (for openai provider)
    OPENAI_CHAT_MODEL: OpenAI model (default: gpt-4o-mini)
    ANTHROPIC_API_KEY: Anthropic API key (for anthropic provider)
    ANTHROPIC_MODEL: Anthropic model (default: claude-sonnet-4-20250514)
    LLMAGENT_MAX_STEPS: Step budget per message (default: 20)
    LLMAGENT_TIMEOUT: Seconds allowed per message (default: 30)
    LLMAGENT_HISTORY_WINDOW: History entries sent to the provider (default: 10)
    LLMAGENT_MAX_THINKING_STEPS: Longest chain of thinking steps (default: 5)
    LLMAGENT_LOG_LEVEL: Log level (default: WARNING)
    LLMAGENT_LOG_FORMAT: console or json (default: console)
    LLMAGENT_STORE_BACKEND: memory or sqlite (default: memory)
    LLMAGENT_STORE_PATH: SQLite database path (default: ./conversations.db)
"""

import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .llm import LLMProvider, create_llm_provider


class AgentConfig(BaseModel):
    """Agent settings."""

    provider: str = Field(default="mock", description="LLM provider name")
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-20250514"

    max_steps: int = Field(default=20, ge=1, description="Step budget per message")
    timeout: float = Field(default=30.0, gt=0, description="Seconds allowed per message")
    history_window: int = Field(default=10, ge=0)
    max_thinking_steps: int = Field(default=5, ge=1)

    log_level: str = "WARNING"
    log_format: Literal["console", "json"] = "console"

    store_backend: Literal["memory", "sqlite"] = "memory"
    store_path: str = "./conversations.db"

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "AgentConfig":
        """Build a configuration from the environment."""
        if load_env_file:
            load_dotenv()

        return cls(
            provider=os.getenv("LLM_PROVIDER", "mock").lower(),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini"),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
            anthropic_model=os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514"),
            max_steps=int(os.getenv("LLMAGENT_MAX_STEPS", "20")),
            timeout=float(os.getenv("LLMAGENT_TIMEOUT", "30")),
            history_window=int(os.getenv("LLMAGENT_HISTORY_WINDOW", "10")),
            max_thinking_steps=int(os.getenv("LLMAGENT_MAX_THINKING_STEPS", "5")),
            log_level=os.getenv("LLMAGENT_LOG_LEVEL", "WARNING"),
            log_format=os.getenv("LLMAGENT_LOG_FORMAT", "console").lower(),
            store_backend=os.getenv("LLMAGENT_STORE_BACKEND", "memory").lower(),
            store_path=os.getenv("LLMAGENT_STORE_PATH", "./conversations.db"),
        )


def create_provider(config: AgentConfig | None = None) -> LLMProvider:
    """Create the configured LLM provider.

    Raises:
        ValueError: If the provider is unknown or its API key is not set
    """
    config = config or AgentConfig.from_env()
    provider = config.provider

    if provider == "openai":
        if not config.openai_api_key:
            raise ValueError("OPENAI_API_KEY not set in environment")
        return create_llm_provider("openai", api_key=config.openai_api_key, model=config.openai_model)

    if provider in ("anthropic", "claude"):
        if not config.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY not set in environment")
        return create_llm_provider(
            "anthropic",
            api_key=config.anthropic_api_key,
            model=config.anthropic_model
        )

    return create_llm_provider(provider)
