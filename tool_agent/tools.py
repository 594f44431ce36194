"""Tool contract, registry and the built-in web scraper tool."""

from __future__ import annotations

import asyncio
import importlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Set

import aiohttp
from bs4 import BeautifulSoup

from .config import ScraperSettings, ToolSettings
from .errors import ConfigurationError, ToolExecutionError, ToolInputError, ToolNotFound

LOGGER = logging.getLogger(__name__)

_CONTENT_TAGS = ("p", "article", "main", "section")


@dataclass(frozen=True)
class ToolResult:
    """Structured output of a tool call plus optional informational metadata."""

    output: Any
    metadata: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"output": self.output}
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data


@dataclass(eq=False)
class BaseTool:
    """Base class for tools with a consistent execute contract.

    ``name`` is the dispatch key and ``description`` is inserted verbatim
    into the system prompt, so it should spell out the expected input.
    Implementations must be safe to call from concurrent queries.
    """

    name: str
    description: str = ""

    async def execute(self, tool_input: Any) -> ToolResult:  # pragma: no cover - interface
        raise NotImplementedError

    async def close(self) -> None:
        return None


class ToolRegistry:
    """Name to tool mapping, filled once and then read by every query."""

    def __init__(self, tools: Optional[List[BaseTool]] = None):
        self._tools: Dict[str, BaseTool] = {}
        for tool in tools or []:
            self.register(tool)

    @classmethod
    def from_settings(cls, settings: Mapping[str, ToolSettings]) -> "ToolRegistry":
        registry = cls()
        for name, tool_settings in settings.items():
            registry.register(get_tool(tool_settings.class_path, name, **tool_settings.args))
        return registry

    def register(self, tool: BaseTool) -> None:
        if tool.name in self._tools:
            LOGGER.debug("Replacing previously registered tool '%s'", tool.name)
        self._tools[tool.name] = tool

    def get(self, name: str) -> BaseTool:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFound(name) from None

    def names(self) -> Set[str]:
        return set(self._tools)

    def tools(self) -> List[BaseTool]:
        return list(self._tools.values())

    def descriptions(self) -> List[str]:
        return [f"- {tool.name}: {tool.description}" for tool in self._tools.values()]

    async def close(self) -> None:
        for tool in self._tools.values():
            await tool.close()

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


def resolve_tool_class(class_path: str):
    module_name, _, cls_name = class_path.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"Invalid class path '{class_path}'")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, cls_name)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError(f"Cannot load tool class '{class_path}': {exc}") from exc


def get_tool(class_path: str, name: str, **kwargs: Any) -> BaseTool:
    tool_cls = resolve_tool_class(class_path)
    if not (isinstance(tool_cls, type) and issubclass(tool_cls, BaseTool)):
        raise ConfigurationError(f"'{class_path}' is not a tool class")
    try:
        return tool_cls(name=name, **kwargs)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid arguments for tool '{name}': {exc}") from exc


@dataclass
class Page:
    """Fields extracted from an HTML document."""

    title: str
    content: str
    links: List[str]


def extract_page(html: str) -> Page:
    """Pull the title, visible text of content elements and link targets."""

    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.get_text().strip() if soup.title is not None else "No title"

    text_content: List[str] = []
    for tag in _CONTENT_TAGS:
        for element in soup.find_all(tag):
            text = element.get_text(" ").strip()
            if text:
                text_content.append(text)

    links = [str(anchor["href"]) for anchor in soup.find_all("a", href=True)]
    return Page(title=title, content="\n".join(text_content), links=links)


class WebScraperTool(BaseTool):
    """Fetch a page over HTTP and return its title, text and links."""

    DESCRIPTION = (
        "Fetch and extract content from web pages. "
        'Input: {"url": "https://example.com"}'
    )

    def __init__(
        self,
        name: str = "web_scraper",
        settings: Optional[ScraperSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
        description: str = DESCRIPTION,
    ):
        super().__init__(name=name, description=description)
        self.settings = settings or ScraperSettings()
        self._session = session
        self._owns_session = session is None

    async def execute(self, tool_input: Any) -> ToolResult:
        url = tool_input.get("url") if isinstance(tool_input, Mapping) else None
        if not isinstance(url, str) or not url.strip():
            raise ToolInputError(self.name, "Missing 'url' parameter")

        started = time.perf_counter()
        html, status = await self._fetch(url.strip())
        fetched = time.perf_counter()
        page = await asyncio.to_thread(extract_page, html)
        parsed = time.perf_counter()

        return ToolResult(
            output={
                "title": page.title,
                "content": page.content,
                "links": page.links[: self.settings.max_links],
                "summary": {
                    "word_count": len(page.content.split()),
                    "link_count": len(page.links),
                },
            },
            metadata={
                "status": status,
                "performance": {
                    "fetch_ms": round((fetched - started) * 1000, 2),
                    "parse_ms": round((parsed - fetched) * 1000, 2),
                },
                "features": ["aiohttp", "beautifulsoup4"],
            },
        )

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _fetch(self, url: str) -> tuple[str, int]:
        timeout = aiohttp.ClientTimeout(total=self.settings.timeout)
        headers = {"User-Agent": self.settings.user_agent}
        LOGGER.debug("Fetching %s", url)
        try:
            async with self._get_session().get(url, headers=headers, timeout=timeout) as response:
                if response.status >= 400:
                    raise ToolExecutionError(self.name, f"HTTP {response.status} fetching {url}")
                return await response.text(), response.status
        except asyncio.TimeoutError as exc:
            raise ToolExecutionError(
                self.name, f"timed out after {self.settings.timeout}s fetching {url}", exc
            ) from exc
        except (aiohttp.ClientError, UnicodeDecodeError) as exc:
            raise ToolExecutionError(self.name, f"cannot fetch {url}: {exc}", exc) from exc
