"""Agent orchestrator tying together decision, execution, and synthesis."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, List, Optional

from .config import Config
from .executor import Executor
from .llm import ChatClient, create_chat_client
from .planner import Planner, ToolInvocation
from .synthesis import Synthesizer
from .tools import BaseTool, ToolRegistry, ToolResult, WebScraperTool

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentRun:
    """Trace of a single query through the agent."""

    query: str
    answer: str
    invocation: Optional[ToolInvocation]
    result: Optional[ToolResult]
    duration: float
    chat_calls: int


class Agent:
    """High-level façade for the two-call tool workflow."""

    def __init__(self, chat: ChatClient, registry: Optional[ToolRegistry] = None):
        self.chat = chat
        self.registry = registry if registry is not None else ToolRegistry()
        self.planner = Planner(self.registry)
        self.executor = Executor(self.registry)
        self.synthesizer = Synthesizer()

    @classmethod
    def from_config(cls, config: Config) -> "Agent":
        """Build an agent with the configured backend and tools.

        The web scraper is always registered first so a configured tool
        with the same name replaces it.
        """

        registry = ToolRegistry([WebScraperTool(settings=config.scraper)])
        for tool in ToolRegistry.from_settings(config.tools).tools():
            registry.register(tool)
        return cls(create_chat_client(config.llm), registry)

    def register_tool(self, tool: BaseTool) -> None:
        self.registry.register(tool)

    def list_tools(self) -> List[str]:
        return sorted(self.registry.names())

    async def execute_tool(self, tool_name: str, tool_input: Any) -> ToolResult:
        record = await self.executor.execute(ToolInvocation(tool_name, tool_input))
        return record.result

    async def run(self, query: str) -> str:
        """Answer ``query``, calling at most one tool along the way."""

        return (await self.run_detailed(query)).answer

    async def run_detailed(self, query: str) -> AgentRun:
        """Run the decision → execution → synthesis loop and return a trace.

        Any failure (chat backend, unknown tool, tool error) propagates to
        the caller unchanged; no partial answer is produced.
        """

        started = time.perf_counter()
        LOGGER.debug("Processing query: %s", query)
        system_prompt = self.planner.build_system_prompt()
        llm_response = await self.chat.chat(system_prompt, query)

        invocation = self.planner.parse_decision(llm_response)
        if invocation is None:
            return AgentRun(
                query=query,
                answer=llm_response,
                invocation=None,
                result=None,
                duration=time.perf_counter() - started,
                chat_calls=1,
            )

        record = await self.executor.execute(invocation)
        synthesis_prompt = self.synthesizer.build_prompt(query, record.tool, record.result)
        answer = await self.chat.chat(system_prompt, synthesis_prompt)
        return AgentRun(
            query=query,
            answer=answer,
            invocation=invocation,
            result=record.result,
            duration=time.perf_counter() - started,
            chat_calls=2,
        )

    async def close(self) -> None:
        await self.registry.close()
        await self.chat.close()

    async def __aenter__(self) -> "Agent":
        return self

    async def __aexit__(self, *_exc: Any) -> None:
        await self.close()
