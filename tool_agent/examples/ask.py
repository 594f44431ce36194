"""Answer a question with the configured backend and the web scraper tool."""

from __future__ import annotations

import asyncio
import os
import sys

from dotenv import load_dotenv

from tool_agent import Agent, Config


async def main(query: str) -> None:
    config = Config(os.environ)
    async with Agent.from_config(config) as agent:
        run = await agent.run_detailed(query)
    if run.invocation is not None:
        print(f"Used tool '{run.invocation.tool_name}' with {run.invocation.input}")
    print(run.answer)  # pragma: no cover - demo output


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(main(" ".join(sys.argv[1:]) or "Summarise https://example.com"))
