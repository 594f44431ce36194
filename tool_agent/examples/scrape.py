"""Run the web scraper tool directly, without any LLM backend."""

from __future__ import annotations

import asyncio
import sys
from pprint import pprint

from tool_agent.tools import WebScraperTool


async def main(url: str) -> None:
    tool = WebScraperTool()
    try:
        result = await tool.execute({"url": url})
    finally:
        await tool.close()
    print("Spec:", tool.name, "-", tool.description)
    pprint(result.output["summary"])  # pragma: no cover - demo output
    pprint(result.metadata)


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "https://example.com"))
