"""Configuration resolution for the agent.

Credentials come from an environment mapping handed in by the caller and
optional overrides come from a YAML file. Everything is resolved once into
frozen dataclasses before any component is constructed.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

import yaml

from .errors import ConfigurationError


class Provider(str, enum.Enum):
    """Supported chat backends."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


# Credential lookup order; the first variable that is set wins.
CREDENTIAL_ENV_VARS = (
    ("OPENAI_API_KEY", Provider.OPENAI),
    ("ANTHROPIC_API_KEY", Provider.ANTHROPIC),
)

DEFAULT_MODELS = {
    Provider.OPENAI: "gpt-4o-mini",
    Provider.ANTHROPIC: "claude-3-5-sonnet-20241022",
}

DEFAULT_BASE_URLS = {
    Provider.OPENAI: "https://api.openai.com/v1",
    Provider.ANTHROPIC: "https://api.anthropic.com/v1",
}

DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; ToolAgent/1.0)"
DEFAULT_MAX_LINKS = 10


@dataclass(frozen=True)
class LLMConfig:
    """Connection and generation settings for the chat backend."""

    provider: Provider
    model: str
    api_key: str = field(repr=False)
    base_url: str
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class ScraperSettings:
    """Settings for the built-in web scraper tool."""

    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    max_links: int = DEFAULT_MAX_LINKS


@dataclass(frozen=True)
class ToolSettings:
    """Definition for an additional tool loaded from a dotted class path."""

    class_path: str
    args: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AgentSettings:
    """Fully-resolved agent configuration."""

    name: str
    llm: LLMConfig
    scraper: ScraperSettings = field(default_factory=ScraperSettings)
    tools: Mapping[str, ToolSettings] = field(default_factory=dict)


def load_config(config_file: Any) -> Dict[str, Any]:
    """Load a YAML configuration file and return the parsed dictionary."""

    path = Path(config_file)
    if not path.exists():
        raise FileNotFoundError(f"Config file '{path}' does not exist")

    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Config file '{path}' is not valid YAML: {exc}") from exc

    if not isinstance(data, MutableMapping):
        raise ConfigurationError("Configuration must be a mapping at the top level")
    return dict(data)


def resolve_credential(environ: Mapping[str, str]) -> tuple[Provider, str]:
    """Return the provider and API key of the first credential present."""

    for variable, provider in CREDENTIAL_ENV_VARS:
        value = (environ.get(variable) or "").strip()
        if value:
            return provider, value
    names = " or ".join(variable for variable, _ in CREDENTIAL_ENV_VARS)
    raise ConfigurationError(f"No API key found. Set {names} environment variable")


def load_scraper_settings(config_file: Optional[Any] = None) -> ScraperSettings:
    """Resolve only the scraper section; needs no backend credential."""

    if config_file is None:
        return ScraperSettings()
    agent_data = Config._section(load_config(config_file), "agent")
    return Config._parse_scraper(Config._section(agent_data, "scraper"))


class Config:
    """Convenience wrapper that exposes strongly-typed config sections."""

    def __init__(self, environ: Mapping[str, str], config_file: Optional[Any] = None):
        self._path = Path(config_file) if config_file is not None else None
        self._raw = load_config(self._path) if self._path is not None else {}
        agent_data = self._section(self._raw, "agent")
        provider, api_key = resolve_credential(environ)
        self._agent = AgentSettings(
            name=str(agent_data.get("name", "ToolAgent")),
            llm=self._parse_llm(provider, api_key, self._section(agent_data, "llm")),
            scraper=self._parse_scraper(self._section(agent_data, "scraper")),
            tools=self._parse_tools(self._section(self._raw, "tools")),
        )

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def raw(self) -> Dict[str, Any]:
        return dict(self._raw)

    @property
    def agent(self) -> AgentSettings:
        return self._agent

    @property
    def llm(self) -> LLMConfig:
        return self._agent.llm

    @property
    def scraper(self) -> ScraperSettings:
        return self._agent.scraper

    @property
    def tools(self) -> Dict[str, ToolSettings]:
        return dict(self._agent.tools)

    @staticmethod
    def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
        value = data.get(key)
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise ConfigurationError(f"Configuration section '{key}' must be a mapping")
        return value

    @staticmethod
    def _parse_llm(provider: Provider, api_key: str, data: Mapping[str, Any]) -> LLMConfig:
        try:
            return LLMConfig(
                provider=provider,
                model=str(data.get("model") or DEFAULT_MODELS[provider]),
                api_key=api_key,
                base_url=str(data.get("base_url") or DEFAULT_BASE_URLS[provider]).rstrip("/"),
                max_tokens=int(data.get("max_tokens", DEFAULT_MAX_TOKENS)),
                temperature=float(data.get("temperature", DEFAULT_TEMPERATURE)),
                timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid llm configuration: {exc}") from exc

    @staticmethod
    def _parse_scraper(data: Mapping[str, Any]) -> ScraperSettings:
        try:
            return ScraperSettings(
                user_agent=str(data.get("user_agent", DEFAULT_USER_AGENT)),
                timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
                max_links=int(data.get("max_links", DEFAULT_MAX_LINKS)),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid scraper configuration: {exc}") from exc

    @staticmethod
    def _parse_tools(data: Mapping[str, Any]) -> Dict[str, ToolSettings]:
        tools: Dict[str, ToolSettings] = {}
        for name, definition in data.items():
            if not isinstance(definition, Mapping):
                raise ConfigurationError(f"Tool definition for '{name}' must be a mapping")
            class_path = definition.get("class")
            if not class_path:
                raise ConfigurationError(f"Tool '{name}' is missing a 'class' entry")
            args = definition.get("args") or {}
            if not isinstance(args, Mapping):
                raise ConfigurationError(f"Tool '{name}' args must be a mapping")
            tools[str(name)] = ToolSettings(class_path=str(class_path), args=dict(args))
        return tools
