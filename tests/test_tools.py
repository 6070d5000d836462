"""Unit tests for the tools module."""
import asyncio

import pytest
from hypothesis import given
from hypothesis import strategies as st

from llmagent.errors import ToolNotFoundError
from llmagent.tools import (
    BaseTool,
    CalculatorTool,
    CurrentTimeTool,
    FunctionTool,
    ToolExecutor,
    ToolRegistry,
    evaluate_expression,
    json_type_of,
    validate,
)

SCHEMA = {
    "type": "object",
    "required": ["symbol", "amount"],
    "properties": {
        "symbol": {"type": "string"},
        "amount": {"type": "number"},
        "count": {"type": "integer"},
        "enabled": {"type": "boolean"},
        "tags": {"type": "array"},
        "options": {"type": "object"},
    },
}


class TestValidation:
    """Tests for argument validation."""

    def test_valid_arguments(self):
        """Test that matching arguments pass."""
        result = validate({"symbol": "ACME", "amount": 1.5}, SCHEMA)

        assert result.valid
        assert result.violations == {}
        assert bool(result)

    def test_missing_required(self):
        """Test that absent required fields are reported."""
        result = validate({"symbol": "ACME"}, SCHEMA)

        assert not result.valid
        assert result.violations == {"missing_required": ["amount"]}

    def test_null_required_counts_as_missing(self):
        """Test that a required field set to None is missing."""
        result = validate({"symbol": None, "amount": 1}, SCHEMA)
        assert result.violations == {"missing_required": ["symbol"]}

    def test_type_mismatch(self):
        """Test that wrong types are reported per field."""
        result = validate({"symbol": 42, "amount": "ten"}, SCHEMA)

        assert result.violations == {
            "type_mismatch": {
                "symbol": "expected string got integer",
                "amount": "expected number got string",
            }
        }

    def test_integer_is_a_number(self):
        """Test that integers satisfy number fields."""
        assert validate({"symbol": "ACME", "amount": 3}, SCHEMA).valid

    def test_number_is_not_an_integer(self):
        """Test that floats do not satisfy integer fields."""
        result = validate({"symbol": "ACME", "amount": 3, "count": 2.5}, SCHEMA)
        assert result.violations["type_mismatch"] == {"count": "expected integer got number"}

    @pytest.mark.parametrize("field", ["amount", "count"])
    def test_boolean_is_not_numeric(self, field):
        """Test that booleans never satisfy numeric fields."""
        args = {"symbol": "ACME", "amount": 1, field: True}
        result = validate(args, SCHEMA)
        assert "type_mismatch" in result.violations

    def test_both_violation_kinds(self):
        """Test that missing fields and mismatches are reported together."""
        result = validate({"symbol": 1, "enabled": "yes"}, SCHEMA)

        assert result.violations["missing_required"] == ["amount"]
        assert set(result.violations["type_mismatch"]) == {"symbol", "enabled"}

    def test_extra_fields_allowed(self):
        """Test that unknown fields are accepted."""
        assert validate({"symbol": "ACME", "amount": 1, "note": "x"}, SCHEMA).valid

    def test_container_types(self):
        """Test array and object fields."""
        good = {"symbol": "A", "amount": 1, "tags": ["x"], "options": {"a": 1}}
        bad = {"symbol": "A", "amount": 1, "tags": "x", "options": [1]}

        assert validate(good, SCHEMA).valid
        assert validate(bad, SCHEMA).violations["type_mismatch"] == {
            "tags": "expected array got string",
            "options": "expected object got array",
        }

    def test_type_list(self):
        """Test fields declaring several allowed types."""
        schema = {"properties": {"value": {"type": ["string", "null"]}}}

        assert validate({"value": None}, schema).valid
        assert validate({"value": "x"}, schema).valid
        assert not validate({"value": 1}, schema).valid

    @pytest.mark.parametrize("schema", [None, {}])
    def test_no_schema_accepts_anything(self, schema):
        """Test that tools without a schema skip validation."""
        assert validate({"anything": object()}, schema).valid

    @given(st.dictionaries(st.text(max_size=8), st.integers() | st.text(max_size=8)))
    def test_validation_completeness(self, args):
        """Property test: every absent required field is reported."""
        schema = {"required": ["a", "b", "c"], "properties": {}}
        result = validate(args, schema)

        expected_missing = [f for f in ["a", "b", "c"] if args.get(f) is None]
        assert result.violations.get("missing_required", []) == expected_missing
        assert result.valid == (not expected_missing)

    @pytest.mark.parametrize("value,expected", [
        (None, "null"),
        (True, "boolean"),
        (1, "integer"),
        (1.5, "number"),
        ("x", "string"),
        ({}, "object"),
        ([], "array"),
    ])
    def test_json_type_of(self, value, expected):
        """Test JSON type names of Python values."""
        assert json_type_of(value) == expected


class TestToolDefinitions:
    """Tests for BaseTool and FunctionTool."""

    def test_base_tool_is_abstract(self):
        """Test that BaseTool cannot be instantiated directly."""
        with pytest.raises(TypeError):
            BaseTool()  # type: ignore

    def test_llm_spec(self):
        """Test the provider-facing tool description."""
        spec = CalculatorTool().to_llm_spec()

        assert spec["name"] == "calculator"
        assert spec["parameters"]["required"] == ["expression"]

    def test_llm_spec_without_schema(self):
        """Test that tools without a schema get an empty object schema."""
        tool = FunctionTool("noop", lambda args: None, "Does nothing")
        assert tool.to_llm_spec()["parameters"] == {"type": "object", "properties": {}}

    @pytest.mark.asyncio
    async def test_sync_function_tool(self):
        """Test wrapping a blocking function."""
        tool = FunctionTool("double", lambda args: args["x"] * 2)
        assert await tool.execute({"x": 21}) == 42

    @pytest.mark.asyncio
    async def test_async_function_tool(self):
        """Test wrapping a coroutine function."""
        async def echo(args):
            return {"echo": args["text"]}

        tool = FunctionTool("echo", echo)
        assert await tool.execute({"text": "hi"}) == {"echo": "hi"}

    def test_description_from_docstring(self):
        """Test that the docstring is used when no description is given."""
        def lookup(args):
            """Look up a stock quote."""

        assert FunctionTool("lookup", lookup).description == "Look up a stock quote."

    def test_from_dict(self):
        """Test building a tool from a definition mapping."""
        tool = FunctionTool.from_dict({
            "name": "search",
            "description": "Search the web",
            "parameters": {"type": "object", "required": ["query"]},
            "execute": lambda args: [],
        })

        assert tool.name == "search"
        assert tool.parameters_schema == {"type": "object", "required": ["query"]}


class TestBuiltinTools:
    """Tests for the demo tools."""

    @pytest.mark.parametrize("expression,expected", [
        ("40+2", 42),
        ("2 * (3 + 4)", 14),
        ("7 / 2", 3.5),
        ("10 / 2", 5),
        ("-3 ** 2", -9),
        ("17 % 5", 2),
    ])
    def test_evaluate_expression(self, expression, expected):
        """Test arithmetic evaluation."""
        assert evaluate_expression(expression) == expected

    @pytest.mark.parametrize("expression", ["__import__('os')", "x + 1", "1 +", "[1, 2]"])
    def test_evaluate_rejects_non_arithmetic(self, expression):
        """Test that anything but arithmetic is rejected."""
        with pytest.raises(ValueError):
            evaluate_expression(expression)

    @pytest.mark.parametrize("expression,message", [
        ("3**3**15", "Exponent too large"),
        ("2 ** -1000", "Exponent too large"),
        ("(2**100)**50", "Result too large"),
        ("(-8) ** 0.5", "Complex results"),
    ])
    def test_evaluate_rejects_oversized_powers(self, expression, message):
        """Test that powers beyond the limits fail fast instead of computing."""
        with pytest.raises(ValueError, match=message):
            evaluate_expression(expression)

    def test_evaluate_allows_powers_within_limits(self):
        """Test powers up to the exponent limit."""
        assert evaluate_expression("2 ** 100") == 2 ** 100
        assert evaluate_expression("10 ** 300 * 10 ** 300") == 10 ** 600

    @pytest.mark.asyncio
    async def test_calculator_rejects_huge_exponent(self):
        """Test the calculator tool reports the exponent limit."""
        with pytest.raises(ValueError, match="Exponent too large"):
            await CalculatorTool().execute({"expression": "3**3**15"})

    @pytest.mark.asyncio
    async def test_calculator(self):
        """Test the calculator tool."""
        assert await CalculatorTool().execute({"expression": "6 * 7"}) == {"result": 42}

    @pytest.mark.asyncio
    async def test_current_time(self):
        """Test the current time tool."""
        result = await CurrentTimeTool().execute({})
        assert result["utc_time"].endswith("UTC")
        assert isinstance(result["unix_timestamp"], int)


class TestToolRegistry:
    """Tests for ToolRegistry."""

    def test_register_and_lookup(self):
        """Test registering and finding tools."""
        registry = ToolRegistry([CalculatorTool()])

        assert "calculator" in registry
        assert len(registry) == 1
        assert registry.lookup("calculator").name == "calculator"

    def test_duplicate_name_rejected(self):
        """Test that names must be unique."""
        registry = ToolRegistry([CalculatorTool()])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(CalculatorTool())

    def test_lookup_missing_raises(self):
        """Test that looking up an unknown tool raises."""
        with pytest.raises(ToolNotFoundError) as exc_info:
            ToolRegistry().lookup("missing_tool")

        assert exc_info.value.tool_name == "missing_tool"
        assert not exc_info.value.is_retryable()

    def test_get_missing_returns_none(self):
        """Test the non-raising lookup."""
        assert ToolRegistry().get("missing_tool") is None

    def test_register_dict_and_function(self):
        """Test the alternative registration forms."""
        registry = ToolRegistry()
        registry.register({"name": "a", "description": "A", "execute": lambda args: 1})
        registry.register_function("b", lambda args: 2, "B")

        assert registry.names == ["a", "b"]
        assert [spec["name"] for spec in registry.specs()] == ["a", "b"]

    def test_unregister(self):
        """Test removing a tool."""
        registry = ToolRegistry([CalculatorTool()])
        registry.unregister("calculator")
        registry.unregister("calculator")

        assert "calculator" not in registry


class TestToolExecutor:
    """Tests for ToolExecutor."""

    @pytest.mark.asyncio
    async def test_successful_execution(self):
        """Test a successful run is timed and returned."""
        execution = await ToolExecutor().execute(CalculatorTool(), {"expression": "1+1"})

        assert execution.ok
        assert execution.result == {"result": 2}
        assert execution.error is None
        assert execution.execution_time_ms >= 0

    @pytest.mark.asyncio
    async def test_fault_is_captured(self):
        """Test that exceptions become error results."""
        execution = await ToolExecutor().execute(CalculatorTool(), {"expression": "1/0"})

        assert not execution.ok
        assert execution.result == {"error": execution.error}
        assert "division" in execution.error

    @pytest.mark.asyncio
    async def test_timeout_is_captured(self):
        """Test that slow tools are cut off."""
        async def slow(args):
            await asyncio.sleep(5)

        execution = await ToolExecutor().execute(FunctionTool("slow", slow), {}, timeout=0.01)

        assert not execution.ok
        assert "timed out" in execution.error

    @pytest.mark.asyncio
    async def test_default_timeout(self):
        """Test the executor-wide timeout."""
        async def slow(args):
            await asyncio.sleep(5)

        execution = await ToolExecutor(default_timeout=0.01).execute(FunctionTool("slow", slow), {})
        assert "timed out" in execution.error
