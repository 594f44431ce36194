"""Executor responsible for dispatching a tool invocation."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from .errors import AgentError, ToolExecutionError
from .planner import ToolInvocation
from .tools import ToolRegistry, ToolResult

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionRecord:
    """Outcome of one tool call together with its wall-clock duration."""

    tool: str
    input: Any
    result: ToolResult
    duration: float


class Executor:
    """Resolve tools from the registry and run them."""

    def __init__(self, registry: ToolRegistry):
        self._registry = registry

    async def execute(self, invocation: ToolInvocation) -> ExecutionRecord:
        """Run ``invocation`` and return the timed result.

        Unknown tools raise ``ToolNotFound``. Any failure inside the tool
        surfaces as ``ToolExecutionError``; nothing is retried.
        """

        tool = self._registry.get(invocation.tool_name)
        LOGGER.debug("Executing tool '%s'", tool.name)
        started = time.perf_counter()
        try:
            result = await tool.execute(invocation.input)
        except AgentError:
            raise
        except Exception as exc:
            raise ToolExecutionError(tool.name, str(exc) or type(exc).__name__, exc) from exc
        duration = time.perf_counter() - started

        if not isinstance(result, ToolResult):
            raise ToolExecutionError(
                tool.name, f"expected ToolResult, got {type(result).__name__}"
            )
        LOGGER.info("Tool '%s' executed in %.2fms", tool.name, duration * 1000)
        return ExecutionRecord(
            tool=tool.name, input=invocation.input, result=result, duration=duration
        )
