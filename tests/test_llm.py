"""Unit tests for the LLM provider boundary."""
import json

import pytest

from llmagent.errors import LLMError
from llmagent.llm import (
    AnthropicProvider,
    ChatMessage,
    LLMProvider,
    LLMResponse,
    LLMToolCall,
    MockProvider,
    OpenAIProvider,
    ScriptedProvider,
    UsageSummary,
    create_llm_provider,
    parse_decision,
)
from llmagent.llm.providers.openai import _parse_arguments, _to_openai_messages, _to_openai_tools
from llmagent.prompts import format_thoughts
from llmagent.tools import default_tools

TOOL_SPECS = [tool.to_llm_spec() for tool in default_tools()]


class TestParseDecision:
    """Tests for turning provider answers into decisions."""

    def test_native_tool_call(self):
        """Test that native tool calls win."""
        response = LLMResponse(
            content="Let me calculate",
            tool_calls=[LLMToolCall(id="1", name="calculator", arguments={"expression": "1+1"})]
        )
        decision = parse_decision(response)

        assert decision.kind == "tool_call"
        assert decision.tool_name == "calculator"
        assert decision.arguments == {"expression": "1+1"}

    def test_first_of_several_tool_calls(self):
        """Test that only the first tool call is used."""
        response = LLMResponse(tool_calls=[
            LLMToolCall(id="1", name="first"),
            LLMToolCall(id="2", name="second"),
        ])
        assert parse_decision(response).tool_name == "first"

    def test_json_tool_call_in_text(self):
        """Test tool calls written as JSON in the content."""
        content = 'I will use a tool: {"tool_name": "calculator", "arguments": {"expression": "2*3"}}'
        decision = parse_decision(LLMResponse(content=content))

        assert decision.kind == "tool_call"
        assert decision.arguments == {"expression": "2*3"}

    @pytest.mark.parametrize("kind,expected", [
        ("thinking", "thinking"),
        ("next_step", "thinking"),
        ("response", "response"),
        ("final_result", "response"),
    ])
    def test_json_kind(self, kind, expected):
        """Test JSON decisions with an explicit kind."""
        content = json.dumps({"kind": kind, "content": "details"})
        decision = parse_decision(LLMResponse(content=content))

        assert decision.kind == expected
        assert decision.content == "details"

    def test_plain_text_is_response(self):
        """Test that free text is a final response."""
        decision = parse_decision(LLMResponse(content="  Paris is the capital.  "))

        assert decision.kind == "response"
        assert decision.content == "Paris is the capital."

    def test_unrelated_json_is_response(self):
        """Test that JSON without decision keys is returned as text."""
        content = '{"city": "Paris"}'
        assert parse_decision(LLMResponse(content=content)).kind == "response"

    def test_empty_answer_is_error(self):
        """Test that an empty answer is an error decision."""
        decision = parse_decision(LLMResponse(content="   "))
        assert decision.kind == "error"


class TestMockProvider:
    """Tests for the rule-based mock provider."""

    @pytest.mark.asyncio
    async def test_arithmetic_calls_calculator(self):
        """Test that arithmetic requests call the calculator."""
        provider = MockProvider()
        response = await provider.chat_completion(
            [ChatMessage(role="user", content="Calculate 40+2")],
            tools=TOOL_SPECS
        )

        assert response.tool_calls[0].name == "calculator"
        assert response.tool_calls[0].arguments == {"expression": "40+2"}

    @pytest.mark.asyncio
    async def test_arithmetic_without_calculator(self):
        """Test that no tool is called when none is offered."""
        provider = MockProvider()
        response = await provider.chat_completion([ChatMessage(role="user", content="What is 2+2?")])
        assert response.tool_calls == []

    @pytest.mark.asyncio
    async def test_time_calls_current_time(self):
        """Test that time requests call the time tool."""
        response = await MockProvider().chat_completion(
            [ChatMessage(role="user", content="What time is it")],
            tools=TOOL_SPECS
        )
        assert response.tool_calls[0].name == "current_time"

    @pytest.mark.asyncio
    async def test_answers_from_function_result(self):
        """Test that a function result is turned into an answer."""
        messages = [
            ChatMessage(role="user", content="Calculate 40+2"),
            ChatMessage(role="function", name="calculator", content='{"result": 42}'),
        ]
        response = await MockProvider().chat_completion(messages, tools=TOOL_SPECS)
        assert response.content == "The result is 42."

    @pytest.mark.asyncio
    async def test_reports_tool_error(self):
        """Test that a failed tool result is reported."""
        messages = [ChatMessage(role="function", name="calculator", content='{"error": "bad"}')]
        response = await MockProvider().chat_completion(messages)
        assert "bad" in response.content

    @pytest.mark.asyncio
    async def test_canned_answer(self):
        """Test a known question."""
        response = await MockProvider().chat_completion(
            [ChatMessage(role="user", content="What is the capital of France?")]
        )
        assert "Paris" in response.content

    @pytest.mark.asyncio
    async def test_statement_produces_thought(self):
        """Test that other input produces a thinking decision."""
        response = await MockProvider().chat_completion(
            [ChatMessage(role="user", content="Plan my week")]
        )
        assert parse_decision(response).kind == "thinking"

    @pytest.mark.asyncio
    async def test_answers_after_thoughts(self):
        """Test that a thoughts context message leads to an answer."""
        messages = [
            ChatMessage(role="user", content="Plan my week"),
            ChatMessage(role="assistant", content=format_thoughts(["Start with Monday"])),
        ]
        response = await MockProvider().chat_completion(messages)

        decision = parse_decision(response)
        assert decision.kind == "response"
        assert "Start with Monday" in decision.content


class TestScriptedProvider:
    """Tests for the scripted test provider."""

    @pytest.mark.asyncio
    async def test_replays_steps_and_records_requests(self):
        """Test scripted answers and request recording."""
        provider = ScriptedProvider(["first", LLMResponse(content="second")])
        messages = [ChatMessage(role="user", content="hi")]

        assert (await provider.chat_completion(messages)).content == "first"
        assert (await provider.chat_completion(messages, temperature=0.1, top_p=1)).content == "second"
        assert len(provider.requests) == 2
        assert provider.requests[1]["options"] == {"top_p": 1}

    @pytest.mark.asyncio
    async def test_raises_scripted_exception(self):
        """Test that exception steps are raised."""
        provider = ScriptedProvider([LLMError("down")])
        with pytest.raises(LLMError, match="down"):
            await provider.chat_completion([])

    @pytest.mark.asyncio
    async def test_exhausted_script(self):
        """Test that running out of answers raises."""
        with pytest.raises(LLMError):
            await ScriptedProvider([]).chat_completion([])


class TestOpenAIConversion:
    """Tests for OpenAI request and response conversion."""

    def test_function_entries_become_user_messages(self):
        """Test that tool results are replayed as user messages."""
        converted = _to_openai_messages([
            ChatMessage(role="system", content="rules"),
            ChatMessage(role="function", name="calculator", content='{"result": 42}'),
        ])

        assert converted[0] == {"role": "system", "content": "rules"}
        assert converted[1]["role"] == "user"
        assert "calculator" in converted[1]["content"]

    def test_tools_use_function_format(self):
        """Test tool spec conversion."""
        converted = _to_openai_tools(TOOL_SPECS)

        assert converted[0]["type"] == "function"
        assert converted[0]["function"]["name"] == "calculator"
        assert converted[0]["function"]["parameters"]["required"] == ["expression"]

    @pytest.mark.parametrize("raw,expected", [
        (None, {}),
        ("", {}),
        ('{"a": 1}', {"a": 1}),
        ("not json", {"raw_arguments": "not json"}),
        ("[1, 2]", {"value": [1, 2]}),
    ])
    def test_parse_arguments(self, raw, expected):
        """Test tool call argument parsing."""
        assert _parse_arguments(raw) == expected


class TestProviderFactory:
    """Tests for create_llm_provider."""

    def test_provider_is_abstract(self):
        """Test that LLMProvider cannot be instantiated directly."""
        with pytest.raises(TypeError):
            LLMProvider()  # type: ignore

    def test_create_mock(self):
        """Test creating the mock provider."""
        provider = create_llm_provider("mock")
        assert isinstance(provider, MockProvider)
        assert provider.model == "mock"

    def test_create_openai(self):
        """Test creating the OpenAI provider."""
        provider = create_llm_provider("openai", api_key="fake-key", model="gpt-4o-mini")
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o-mini"

    @pytest.mark.parametrize("name", ["anthropic", "Claude"])
    def test_create_anthropic(self, name):
        """Test creating the Anthropic provider under both names."""
        provider = create_llm_provider(name, api_key="fake-key")
        assert isinstance(provider, AnthropicProvider)

    def test_missing_api_key(self):
        """Test that real providers need an API key."""
        with pytest.raises(TypeError, match="api_key"):
            create_llm_provider("openai")

    def test_unknown_provider(self):
        """Test that unknown providers are rejected."""
        with pytest.raises(ValueError, match="Unsupported provider"):
            create_llm_provider("unknown")

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_openai_real_api(self, api_keys):
        """Integration test: one completion with the real API."""
        if not api_keys["openai"]:
            pytest.skip("OPENAI_API_KEY not set")

        async with create_llm_provider("openai", api_key=api_keys["openai"]) as provider:
            response = await provider.chat_completion(
                [ChatMessage(role="user", content="Reply with the word ok.")],
                max_tokens=5
            )
        assert response.content


class TestUsageSummary:
    """Tests for token usage accounting."""

    def test_add_response(self):
        """Test usage is accumulated per model."""
        usage = UsageSummary()
        usage.add_response(LLMResponse(
            content="x",
            model="m1",
            usage={"prompt_tokens": 10, "completion_tokens": 5}
        ))
        usage.add_response(LLMResponse(content="y", model="m1"))

        assert usage.total_calls == 2
        assert usage.total_input_tokens == 10
        assert usage.total_output_tokens == 5
        assert usage.model_breakdown["m1"]["calls"] == 2
