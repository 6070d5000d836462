"""Tests for the high-level agent API."""
import pytest
import structlog

import llmagent
from llmagent import Agent
from llmagent.llm import MockProvider, ScriptedProvider
from llmagent.store import InMemoryStoreBackend
from llmagent.tools import default_tools


@pytest.fixture
def agent(config):
    """Return an agent with the demo tools and the mock provider."""
    return Agent.create(tools=default_tools(), provider=MockProvider(), config=config)


class TestAgent:
    """Tests for Agent."""

    def test_default_system_prompt_lists_tools(self, agent):
        """Test the bundled system prompt."""
        system = agent.store.history[0]

        assert system.role == "system"
        assert "- calculator:" in system.content
        assert "- current_time:" in system.content
        assert '{"kind": "thinking"' in system.content

    def test_custom_system_prompt(self, config):
        """Test an explicit system prompt."""
        agent = Agent.create("Be brief.", provider=MockProvider(), config=config)

        assert agent.store.history[0].content == "Be brief."
        assert len(agent.engine.context.tools) == 0

    @pytest.mark.asyncio
    async def test_process(self, agent):
        """Test processing a message."""
        result = await agent.process("Calculate 40+2")

        assert result.content == "The result is 42."
        assert agent.usage.total_calls == 2
        assert result.store is agent.store

    @pytest.mark.asyncio
    async def test_process_binds_conversation_id(self, agent):
        """Test that log entries carry the conversation id."""
        await agent.process("What is the capital of France?")

        assert structlog.contextvars.get_contextvars()["conversation_id"] == agent.conversation_id

    @pytest.mark.asyncio
    async def test_ask(self, agent):
        """Test getting just the reply text."""
        assert await agent.ask("What is the capital of France?") == "The capital of France is Paris."

    @pytest.mark.asyncio
    async def test_ask_reports_limit_errors(self, agent):
        """Test the text returned when a limit is hit."""
        reply = await agent.ask("Calculate 40+2", max_steps=1)
        assert reply == "Exceeded maximum steps (1)"

    @pytest.mark.asyncio
    async def test_saves_to_backend(self, config):
        """Test that each message is persisted."""
        backend = InMemoryStoreBackend()
        agent = Agent.create(provider=MockProvider(), config=config, backend=backend)

        await agent.process("How are you?")

        saved = await backend.load(agent.conversation_id)
        assert saved == agent.store


class TestResume:
    """Tests for Agent.resume."""

    @pytest.mark.asyncio
    async def test_new_conversation(self, config):
        """Test resuming an unknown id starts it."""
        backend = InMemoryStoreBackend()

        agent = await Agent.resume("conv-9", backend, provider=MockProvider(), config=config)

        assert agent.conversation_id == "conv-9"
        assert [e.role for e in agent.store.history] == ["system"]

    @pytest.mark.asyncio
    async def test_continues_history(self, config):
        """Test that a resumed conversation keeps its history."""
        backend = InMemoryStoreBackend()
        tools = default_tools()

        first = await Agent.resume("conv-9", backend, tools=tools, provider=MockProvider(), config=config)
        await first.process("Calculate 1+1")

        provider = ScriptedProvider(["Still here."])
        second = await Agent.resume("conv-9", backend, tools=tools, provider=provider, config=config)
        await second.process("Are you there?")

        sent = [m.content for m in provider.requests[0]["messages"]]
        assert "Calculate 1+1" in sent
        assert second.store.history[-1].content == "Still here."
        assert [e.role for e in second.store.history].count("system") == 1


class TestModuleFunctions:
    """Tests for llmagent.new and llmagent.process."""

    @pytest.mark.asyncio
    async def test_new_and_process(self, config):
        """Test the shortest path to an answer."""
        engine, store = llmagent.new(
            "You are a calculator.",
            default_tools(),
            provider=MockProvider(),
            config=config
        )

        result = await llmagent.process(engine, store, "Calculate 40+2")

        assert result.ok
        assert result.content == "The result is 42."

    @pytest.mark.asyncio
    async def test_process_timeout(self, config):
        """Test the timeout argument of process."""
        engine, store = llmagent.new("rules", provider=ScriptedProvider([]), config=config)

        result = await llmagent.process(engine, store, "Hi", timeout=5.0)

        assert result.signal.meta["recovered_from"] == "llm_call"
