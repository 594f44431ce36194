"""Command-line entry point: single query, direct scrape, or interactive loop."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
import time
from typing import Awaitable, Callable, List, Optional

from dotenv import load_dotenv

from .agent import Agent
from .config import Config, load_scraper_settings
from .errors import AgentError
from .tools import WebScraperTool

LOGGER = logging.getLogger(__name__)

RULE = "─" * 60
EXIT_WORDS = {"exit", "quit"}
SCRAPE_PREFIX = "scrape "


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tool-agent",
        description="LLM agent that can fetch and read web pages",
    )
    parser.add_argument("--config", help="Optional YAML configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Answer a single query")
    run_parser.add_argument("query")

    scrape_parser = subparsers.add_parser("scrape", help="Scrape a URL without the LLM")
    scrape_parser.add_argument("url")

    subparsers.add_parser("interactive", help="Read queries from stdin until 'exit'")
    return parser


def print_response(title: str, response: str) -> None:
    print(RULE)
    print(title)
    print(RULE)
    print(response)
    print(RULE)
    print()


async def scrape_url(tool: WebScraperTool, url: str, verbose: bool = False) -> None:
    print(f"\nSCRAPING URL {url}")
    started = time.perf_counter()
    result = await tool.execute({"url": url})
    duration = time.perf_counter() - started

    payload = result.to_dict() if verbose else result.output
    print("\nRESULT:")
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    print(f"\nScraped in {duration * 1000:.2f}ms\n")


async def read_line(prompt: str) -> Optional[str]:
    try:
        return await asyncio.to_thread(input, prompt)
    except EOFError:
        return None


async def interactive_loop(
    agent: Agent,
    scraper: WebScraperTool,
    reader: Callable[[str], Awaitable[Optional[str]]] = read_line,
) -> None:
    """Prompt for queries until ``exit``/``quit`` or end of input."""

    print("INTERACTIVE MODE")
    print("Type 'exit' to quit")
    print("Try: 'scrape https://example.com' or ask questions\n")

    while True:
        line = await reader("Query: ")
        if line is None:
            break
        query = line.strip()
        if not query:
            continue
        if query.lower() in EXIT_WORDS:
            print("\nGoodbye!\n")
            break

        try:
            if query.startswith(SCRAPE_PREFIX):
                await scrape_url(scraper, query[len(SCRAPE_PREFIX):].strip())
            else:
                print_response("RESPONSE", await agent.run(query))
        except AgentError as exc:
            print(f"\nError: {exc}\n")


async def _run(args: argparse.Namespace) -> None:
    if args.command == "scrape":
        tool = WebScraperTool(settings=load_scraper_settings(args.config))
        try:
            await scrape_url(tool, args.url, verbose=args.verbose)
        finally:
            await tool.close()
        return

    config = Config(os.environ, args.config)
    async with Agent.from_config(config) as agent:
        LOGGER.debug("Registered tools: %s", ", ".join(agent.list_tools()))
        if args.command == "run":
            print(RULE)
            print(f"Processing Query: {args.query}")
            print(RULE)
            print_response("FINAL RESPONSE", await agent.run(args.query))
        else:
            scraper = WebScraperTool(settings=config.scraper)
            try:
                await interactive_loop(agent, scraper)
            finally:
                await scraper.close()


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        asyncio.run(_run(args))
    except (AgentError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0
