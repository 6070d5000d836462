"""Registry mapping tool names to tools."""

from collections.abc import Callable, Iterable, Iterator
from typing import Any

import structlog

from ..errors import ToolNotFoundError
from .base import BaseTool, FunctionTool

logger = structlog.get_logger(__name__)

ToolLike = BaseTool | dict[str, Any]


class ToolRegistry:
    """Registry for the tools available to one agent.

    Names are unique; registering a duplicate raises ``ValueError``.
    """

    def __init__(self, tools: Iterable[ToolLike] | None = None):
        self._tools: dict[str, BaseTool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: ToolLike) -> "ToolRegistry":
        """Register a tool (a ``BaseTool`` or a ``{name, execute, ...}`` dict).

        Returns:
            Self for method chaining
        """
        if isinstance(tool, dict):
            tool = FunctionTool.from_dict(tool)

        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name} already registered")

        self._tools[tool.name] = tool
        logger.debug("tool_registered", tool=tool.name)
        return self

    def register_function(
        self,
        name: str,
        func: Callable[[dict[str, Any]], Any],
        description: str = "",
        parameters_schema: dict[str, Any] | None = None
    ) -> "ToolRegistry":
        """Register a plain function as a tool."""
        return self.register(FunctionTool(name, func, description, parameters_schema))

    def unregister(self, name: str) -> None:
        self._tools.pop(name, None)

    def lookup(self, name: str) -> BaseTool:
        """Get a tool by name.

        Raises:
            ToolNotFoundError: If no tool has that name
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def get(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    @property
    def tools(self) -> list[BaseTool]:
        return list(self._tools.values())

    def specs(self) -> list[dict[str, Any]]:
        """LLM specifications of every registered tool."""
        return [tool.to_llm_spec() for tool in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[BaseTool]:
        return iter(self._tools.values())
