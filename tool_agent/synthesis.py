"""Synthesis phase: fold a tool result back into a prompt for the model."""

from __future__ import annotations

import json
from typing import Any

from .tools import ToolResult

SYNTHESIS_PROMPT_TEMPLATE = (
    "User query: {query}\n\n"
    "The tool '{tool}' returned: {output}\n\n"
    "Based on this result, answer the user's query."
)


def render_output(output: Any) -> str:
    """Render a tool output as compact JSON text."""

    return json.dumps(output, ensure_ascii=False, default=str)


class Synthesizer:
    """Build the second prompt from the query and the tool's output."""

    def build_prompt(self, query: str, tool_name: str, result: ToolResult) -> str:
        return SYNTHESIS_PROMPT_TEMPLATE.format(
            query=query, tool=tool_name, output=render_output(result.output)
        )
