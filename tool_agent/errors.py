"""Exception hierarchy shared by the agent components."""

from __future__ import annotations

from typing import Optional


class AgentError(Exception):
    """Base class for every error raised by the agent."""


class ConfigurationError(AgentError, ValueError):
    """No usable backend credential, or a malformed configuration file."""


class ChatError(AgentError):
    """A chat backend call failed (network, status, or payload)."""

    def __init__(self, backend: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"[{backend}] {message}")
        self.backend = backend
        self.cause = cause


class ToolNotFound(AgentError, LookupError):
    """The requested tool is not registered."""

    def __init__(self, tool_name: str):
        super().__init__(f"Tool '{tool_name}' not found")
        self.tool_name = tool_name


class ToolExecutionError(AgentError):
    """A tool failed while executing."""

    def __init__(self, tool_name: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"Tool '{tool_name}' failed: {message}")
        self.tool_name = tool_name
        self.cause = cause


class ToolInputError(ToolExecutionError):
    """The tool input is missing a required field or has the wrong type."""
