"""Tool registry, argument validation and execution."""

from .base import BaseTool, FunctionTool
from .builtin import CalculatorTool, CurrentTimeTool, default_tools, evaluate_expression
from .executor import ToolExecution, ToolExecutor
from .registry import ToolLike, ToolRegistry
from .validation import ValidationResult, json_type_of, validate

__all__ = [
    "BaseTool",
    "CalculatorTool",
    "CurrentTimeTool",
    "FunctionTool",
    "ToolExecution",
    "ToolExecutor",
    "ToolLike",
    "ToolRegistry",
    "ValidationResult",
    "default_tools",
    "evaluate_expression",
    "json_type_of",
    "validate",
]
