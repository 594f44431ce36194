"""Top-level package for the single-turn tool agent.

The package exposes the objects that make up the orchestration loop so
consumers can compose the agent without digging through individual modules.
"""

from .agent import Agent, AgentRun
from .config import AgentSettings, Config, LLMConfig, Provider, ScraperSettings, load_config
from .errors import (
    AgentError,
    ChatError,
    ConfigurationError,
    ToolExecutionError,
    ToolInputError,
    ToolNotFound,
)
from .executor import ExecutionRecord, Executor
from .llm import AnthropicChat, ChatClient, OpenAIChat, create_chat_client
from .planner import Planner, ToolInvocation
from .synthesis import Synthesizer
from .tools import BaseTool, ToolRegistry, ToolResult, WebScraperTool, get_tool

__all__ = [
    "Agent",
    "AgentRun",
    "AgentSettings",
    "AgentError",
    "AnthropicChat",
    "BaseTool",
    "ChatClient",
    "ChatError",
    "Config",
    "ConfigurationError",
    "ExecutionRecord",
    "Executor",
    "LLMConfig",
    "OpenAIChat",
    "Planner",
    "Provider",
    "ScraperSettings",
    "Synthesizer",
    "ToolExecutionError",
    "ToolInputError",
    "ToolInvocation",
    "ToolNotFound",
    "ToolRegistry",
    "ToolResult",
    "WebScraperTool",
    "create_chat_client",
    "get_tool",
    "load_config",
]
