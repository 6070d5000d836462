"""Timed, fault-capturing tool execution."""

import asyncio
import time
from typing import Any

import structlog
from pydantic import BaseModel, Field

from .base import BaseTool

logger = structlog.get_logger(__name__)


class ToolExecution(BaseModel):
    """Result of executing a tool.

    Attributes:
        tool_name: Name of the tool that ran
        result: The tool's result, or ``{"error": message}`` on failure
        error: The failure message, None on success
        execution_time_ms: Wall time measured with a monotonic clock
    """

    tool_name: str
    result: Any = None
    error: str | None = None
    execution_time_ms: float = Field(default=0.0, ge=0.0)

    @property
    def ok(self) -> bool:
        return self.error is None


class ToolExecutor:
    """Runs tools and converts any fault into a structured value.

    Nothing raised by a tool escapes ``execute``.
    """

    def __init__(self, default_timeout: float | None = None):
        """Initialize the executor.

        Args:
            default_timeout: Seconds allowed per tool call (None: unbounded)
        """
        self._default_timeout = default_timeout

    async def execute(
        self,
        tool: BaseTool,
        args: dict[str, Any],
        timeout: float | None = None
    ) -> ToolExecution:
        """Execute ``tool`` with ``args``.

        Args:
            tool: The tool to run
            args: Arguments, already validated
            timeout: Seconds allowed for this call, overrides the default

        Returns:
            ToolExecution with either the result or the captured error
        """
        limit = timeout if timeout is not None else self._default_timeout
        start = time.monotonic()

        try:
            if limit is not None:
                result = await asyncio.wait_for(tool.execute(args), timeout=limit)
            else:
                result = await tool.execute(args)
        except asyncio.TimeoutError:
            message = f"Tool '{tool.name}' timed out after {limit}s"
            return self._failure(tool.name, message, start)
        except Exception as e:
            return self._failure(tool.name, str(e) or type(e).__name__, start)

        elapsed = (time.monotonic() - start) * 1000
        logger.debug("tool_executed", tool=tool.name, execution_time_ms=round(elapsed, 3))
        return ToolExecution(tool_name=tool.name, result=result, execution_time_ms=elapsed)

    def _failure(self, tool_name: str, message: str, start: float) -> ToolExecution:
        elapsed = (time.monotonic() - start) * 1000
        logger.warning("tool_failed", tool=tool_name, error=message)
        return ToolExecution(
            tool_name=tool_name,
            result={"error": message},
            error=message,
            execution_time_ms=elapsed
        )
