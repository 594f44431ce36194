"""Decision phase: build the tool-aware system prompt and parse the reply."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from .tools import ToolRegistry

LOGGER = logging.getLogger(__name__)

SYSTEM_PROMPT_TEMPLATE = (
    "You are a helpful AI agent with access to the following tools:\n"
    "{tools}\n\n"
    "When you need to use a tool, respond with JSON in this format:\n"
    '{{"tool": "tool_name", "input": {{...input_data...}}}}\n\n'
    "After getting tool results, provide a natural language response to the user."
)


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call requested by the model for the current query."""

    tool_name: str
    input: Any


class Planner:
    """Turn the registry into a system prompt and the model reply into a plan."""

    def __init__(self, registry: ToolRegistry):
        self._registry = registry

    def build_system_prompt(self) -> str:
        return SYSTEM_PROMPT_TEMPLATE.format(tools="\n".join(self._registry.descriptions()))

    def parse_decision(self, response: str) -> Optional[ToolInvocation]:
        """Return the requested invocation, or ``None`` for a direct answer.

        The reply counts as a tool call only when the whole text is a JSON
        object with a string ``tool`` field and an ``input`` field. ``input``
        may be any JSON value, not only an object; the tool validates it.
        Anything else, including invalid or too deeply nested JSON, is
        treated as the final answer.
        """

        try:
            decision = json.loads(response)
        except (TypeError, ValueError, RecursionError):
            LOGGER.debug("Decision reply is not JSON; answering directly")
            return None

        if not isinstance(decision, dict):
            return None
        tool_name = decision.get("tool")
        if not isinstance(tool_name, str) or "input" not in decision:
            LOGGER.debug("Decision reply is JSON but not a tool call; answering directly")
            return None
        return ToolInvocation(tool_name=tool_name, input=decision["input"])
