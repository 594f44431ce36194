import asyncio
import json
import unittest
from pathlib import Path
from typing import Any, List, Tuple

from tool_agent.agent import Agent
from tool_agent.config import Config, LLMConfig, Provider
from tool_agent.errors import ChatError, ToolInputError, ToolNotFound
from tool_agent.llm import ChatClient, OpenAIChat
from tool_agent.tools import BaseTool, ToolResult, WebScraperTool

DECISION = '{"tool": "web_scraper", "input": {"url": "https://example.com"}}'


class ScriptedChat(ChatClient):
    """Chat client returning canned replies and recording every call."""

    backend = "scripted"

    def __init__(self, *replies: Any):
        super().__init__(
            LLMConfig(provider=Provider.OPENAI, model="fake", api_key="fake", base_url="http://fake")
        )
        self.replies = list(replies)
        self.calls: List[Tuple[str, str]] = []

    async def chat(self, system: str, user_message: str) -> str:
        self.calls.append((system, user_message))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeScraper(BaseTool):
    def __init__(self, name: str = "web_scraper", metadata: Any = None):
        super().__init__(name=name, description='Fetch pages. Input: {"url": "..."}')
        self.metadata = metadata
        self.calls: List[Any] = []

    async def execute(self, tool_input: Any) -> ToolResult:
        self.calls.append(tool_input)
        await asyncio.sleep(0)
        return ToolResult(
            output={"title": "Example Domain", "summary": {"word_count": 2, "link_count": 1}},
            metadata=self.metadata,
        )


class AgentTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.scraper = FakeScraper()

    def _agent(self, *replies: Any) -> Agent:
        agent = Agent(ScriptedChat(*replies))
        agent.register_tool(self.scraper)
        return agent

    async def test_prose_reply_is_returned_unchanged(self):
        agent = self._agent("Paris is the capital of France.")
        answer = await agent.run("What is the capital of France?")
        self.assertEqual(answer, "Paris is the capital of France.")
        self.assertEqual(len(agent.chat.calls), 1)
        self.assertEqual(self.scraper.calls, [])

    async def test_tool_call_runs_once_and_synthesises(self):
        agent = self._agent(DECISION, "The page is titled Example Domain.")
        answer = await agent.run("What is on example.com?")
        self.assertEqual(answer, "The page is titled Example Domain.")
        self.assertEqual(self.scraper.calls, [{"url": "https://example.com"}])
        self.assertEqual(len(agent.chat.calls), 2)

        (first_system, first_user), (second_system, second_user) = agent.chat.calls
        self.assertEqual(first_user, "What is on example.com?")
        self.assertEqual(second_system, first_system)
        self.assertIn('- web_scraper: Fetch pages. Input: {"url": "..."}', first_system)
        self.assertIn("User query: What is on example.com?", second_user)
        self.assertIn("The tool 'web_scraper' returned: ", second_user)
        self.assertIn('"title": "Example Domain"', second_user)

    async def test_second_reply_is_not_parsed_for_tools(self):
        agent = self._agent(DECISION, DECISION)
        answer = await agent.run("Scrape example.com")
        self.assertEqual(answer, DECISION)
        self.assertEqual(len(self.scraper.calls), 1)

    async def test_unknown_tool_fails_without_second_call(self):
        agent = self._agent('{"tool": "teleporter", "input": {}}', "unused")
        with self.assertRaises(ToolNotFound):
            await agent.run("Beam me up")
        self.assertEqual(len(agent.chat.calls), 1)
        self.assertEqual(self.scraper.calls, [])

    async def test_tool_failure_aborts_before_second_call(self):
        agent = Agent(ScriptedChat('{"tool": "web_scraper", "input": {}}', "unused"))
        agent.register_tool(WebScraperTool())
        with self.assertRaises(ToolInputError):
            await agent.run("Scrape something")
        self.assertEqual(len(agent.chat.calls), 1)
        await agent.close()

    async def test_chat_failure_propagates(self):
        agent = self._agent(ChatError("scripted", "boom"))
        with self.assertRaises(ChatError):
            await agent.run("anything")
        self.assertEqual(self.scraper.calls, [])

    async def test_synthesis_failure_propagates(self):
        agent = self._agent(DECISION, ChatError("scripted", "down"))
        with self.assertRaises(ChatError):
            await agent.run("anything")
        self.assertEqual(len(self.scraper.calls), 1)

    async def test_run_detailed_reports_trace(self):
        metadata = {"features": ["fake"]}
        self.scraper = FakeScraper(metadata=metadata)
        agent = self._agent(DECISION, "done")
        run = await agent.run_detailed("q")
        self.assertEqual(run.answer, "done")
        self.assertEqual(run.chat_calls, 2)
        self.assertEqual(run.invocation.tool_name, "web_scraper")
        self.assertEqual(run.result.metadata, metadata)
        self.assertGreaterEqual(run.duration, 0.0)

        direct = await self._agent("hi").run_detailed("hello")
        self.assertIsNone(direct.invocation)
        self.assertIsNone(direct.result)
        self.assertEqual(direct.chat_calls, 1)

    async def test_result_survives_synthesis_unchanged(self):
        output = {"title": "T", "links": ["/a"], "summary": {"word_count": 1, "link_count": 1}}
        metadata = {"performance": {"fetch_ms": 1.5}}
        result = ToolResult(output=output, metadata=metadata)
        prompt = self._agent().synthesizer.build_prompt("q", "web_scraper", result)
        self.assertEqual(result.output, {"title": "T", "links": ["/a"], "summary": {"word_count": 1, "link_count": 1}})
        self.assertEqual(result.metadata, {"performance": {"fetch_ms": 1.5}})
        self.assertIn(json.dumps(output), prompt)
        self.assertNotIn("fetch_ms", prompt)

    async def test_deeply_nested_reply_is_returned_unchanged(self):
        reply = '{"a": ' * 50000
        agent = self._agent(reply)
        self.assertEqual(await agent.run("q"), reply)
        self.assertEqual(self.scraper.calls, [])

    async def test_concurrent_queries_share_agent(self):
        agent = Agent(ScriptedChat(*(["plain answer"] * 5)))
        answers = await asyncio.gather(*(agent.run(f"q{index}") for index in range(5)))
        self.assertEqual(answers, ["plain answer"] * 5)

    async def test_execute_tool_directly(self):
        agent = self._agent()
        result = await agent.execute_tool("web_scraper", {"url": "https://example.com"})
        self.assertEqual(result.output["title"], "Example Domain")
        with self.assertRaises(ToolNotFound):
            await agent.execute_tool("nope", {})


class AgentFromConfigTests(unittest.IsolatedAsyncioTestCase):
    async def test_default_registry_has_web_scraper(self):
        async with Agent.from_config(Config({"OPENAI_API_KEY": "sk"})) as agent:
            self.assertIsInstance(agent.chat, OpenAIChat)
            self.assertEqual(agent.list_tools(), ["web_scraper"])

    async def test_configured_tools_are_registered(self):
        config_path = Path(__file__).parent / "fixtures" / "sample_config.yaml"
        config = Config({"ANTHROPIC_API_KEY": "sk-ant"}, config_path)
        async with Agent.from_config(config) as agent:
            self.assertEqual(agent.list_tools(), ["docs_scraper", "web_scraper"])
            self.assertEqual(agent.registry.get("web_scraper").settings.max_links, 5)
            self.assertEqual(agent.chat.config.model, "test-model")


if __name__ == "__main__":
    unittest.main()
