"""Tool definitions."""

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class BaseTool(ABC):
    """Abstract base class for tools.

    A tool is a named capability with a description for the LLM, an
    optional parameter schema, and an ``execute`` coroutine that either
    returns a JSON-like result or raises.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the tool name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get the tool description for the LLM."""
        pass

    @property
    def parameters_schema(self) -> dict[str, Any] | None:
        """Get the JSON schema for tool parameters (None: no validation)."""
        return None

    @abstractmethod
    async def execute(self, args: dict[str, Any]) -> Any:
        """Run the tool.

        Args:
            args: Validated tool arguments

        Returns:
            A JSON-like result
        """
        pass

    def to_llm_spec(self) -> dict[str, Any]:
        """Convert tool to LLM-friendly specification.

        Returns:
            Dictionary describing the tool for the LLM
        """
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters_schema or {"type": "object", "properties": {}}
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class FunctionTool(BaseTool):
    """Tool backed by a plain function.

    The function receives the argument dict. Coroutine functions are
    awaited; blocking functions run in a worker thread so they never stall
    the event loop.
    """

    def __init__(
        self,
        name: str,
        func: Callable[[dict[str, Any]], Any],
        description: str = "",
        parameters_schema: dict[str, Any] | None = None
    ):
        self._name = name
        self._func = func
        self._description = description or (inspect.getdoc(func) or "").strip()
        self._schema = parameters_schema

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def parameters_schema(self) -> dict[str, Any] | None:
        return self._schema

    async def execute(self, args: dict[str, Any]) -> Any:
        if inspect.iscoroutinefunction(self._func):
            result = await self._func(args)
        else:
            result = await asyncio.to_thread(self._func, args)

        if inspect.isawaitable(result):
            result = await result
        return result

    @classmethod
    def from_dict(cls, definition: dict[str, Any]) -> "FunctionTool":
        """Build a tool from ``{name, description, parameters?, execute}``."""
        return cls(
            name=definition["name"],
            func=definition["execute"],
            description=definition.get("description", ""),
            parameters_schema=definition.get("parameters") or definition.get("parameters_schema")
        )
