"""Built-in demo tools: calculator and current time."""

import ast
import asyncio
import operator
from datetime import datetime, timezone
from typing import Any

from .base import BaseTool

MAX_EXPONENT = 100
MAX_INT_BITS = 4096


def _power(base: int | float, exponent: int | float) -> int | float:
    if abs(exponent) > MAX_EXPONENT:
        raise ValueError(f"Exponent too large (limit {MAX_EXPONENT}): {exponent}")
    return operator.pow(base, exponent)


_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: _power,
}

_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


def _checked(value: Any) -> int | float:
    if isinstance(value, complex):
        raise ValueError("Complex results are not supported")
    if isinstance(value, int) and value.bit_length() > MAX_INT_BITS:
        raise ValueError(f"Result too large (limit {MAX_INT_BITS} bits)")
    return value


def evaluate_expression(expression: str) -> int | float:
    """Evaluate an arithmetic expression without ``eval``.

    Only numeric literals, parentheses and + - * / // % ** are accepted.
    Exponents are limited to ``MAX_EXPONENT`` and integer intermediate
    results to ``MAX_INT_BITS`` bits.

    Raises:
        ValueError: On any other syntax or when a limit is exceeded
        ZeroDivisionError: On division by zero
    """
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as e:
        raise ValueError(f"Invalid expression: {expression!r}") from e

    def _eval(node: ast.AST) -> int | float:
        if isinstance(node, ast.Expression):
            return _eval(node.body)
        if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) \
                and not isinstance(node.value, bool):
            return _checked(node.value)
        if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
            return _checked(_BINARY_OPS[type(node.op)](_eval(node.left), _eval(node.right)))
        if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
            return _UNARY_OPS[type(node.op)](_eval(node.operand))
        raise ValueError(f"Unsupported expression element: {type(node).__name__}")

    result = _eval(tree)
    if isinstance(result, float) and result.is_integer():
        return int(result)
    return result


class CalculatorTool(BaseTool):
    """Evaluates arithmetic expressions."""

    @property
    def name(self) -> str:
        return "calculator"

    @property
    def description(self) -> str:
        return (
            "Perform mathematical calculations. "
            "Requires an 'expression' parameter such as '42 * 73'."
        )

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "expression": {
                    "type": "string",
                    "description": "Arithmetic expression to evaluate"
                }
            },
            "required": ["expression"]
        }

    async def execute(self, args: dict[str, Any]) -> dict[str, Any]:
        value = await asyncio.to_thread(evaluate_expression, args["expression"])
        return {"result": value}


class CurrentTimeTool(BaseTool):
    """Reports the current UTC time."""

    @property
    def name(self) -> str:
        return "current_time"

    @property
    def description(self) -> str:
        return "Get the current time and date."

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {"type": "object", "properties": {}}

    async def execute(self, args: dict[str, Any]) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        return {
            "utc_time": now.strftime("%Y-%m-%d %H:%M:%S UTC"),
            "iso8601": now.isoformat(),
            "unix_timestamp": int(now.timestamp())
        }


def default_tools() -> list[BaseTool]:
    """The demo tool set."""
    return [CalculatorTool(), CurrentTimeTool()]
