"""Chat backends behind a single stateless ``chat`` operation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Type

import aiohttp

from .config import LLMConfig, Provider
from .errors import ChatError

LOGGER = logging.getLogger(__name__)

NO_RESPONSE = "No response"
ANTHROPIC_VERSION = "2023-06-01"


class ChatClient:
    """Single-turn request/response against a text-generation backend.

    Every call is independent: the caller passes the full system
    instructions and user message and no history is kept. The underlying
    ``aiohttp.ClientSession`` is created on first use and shared by every
    call, so one client can serve many concurrent queries.
    """

    backend = "chat"

    def __init__(self, config: LLMConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self._session = session
        self._owns_session = session is None

    async def chat(self, system: str, user_message: str) -> str:
        """Return the backend's reply to ``user_message`` under ``system``."""

        raise NotImplementedError  # pragma: no cover - interface

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *_exc: Any) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _post_json(
        self, url: str, payload: Mapping[str, Any], headers: Mapping[str, str]
    ) -> Dict[str, Any]:
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        LOGGER.debug("POST %s (model=%s)", url, self.config.model)
        try:
            async with self._get_session().post(
                url, json=dict(payload), headers=dict(headers), timeout=timeout
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise ChatError(
                        self.backend, f"HTTP {response.status}: {body[:200]}"
                    )
                data = await response.json(content_type=None)
        except asyncio.TimeoutError as exc:
            raise ChatError(
                self.backend, f"request timed out after {self.config.timeout}s", exc
            ) from exc
        except aiohttp.ClientError as exc:
            raise ChatError(self.backend, f"request failed: {exc}", exc) from exc
        except ValueError as exc:
            raise ChatError(self.backend, "response body is not valid JSON", exc) from exc

        if not isinstance(data, dict):
            raise ChatError(self.backend, "response body is not a JSON object")
        return data

    def _no_response(self) -> str:
        LOGGER.warning("%s returned no content; using '%s'", self.backend, NO_RESPONSE)
        return NO_RESPONSE


class OpenAIChat(ChatClient):
    """Chat Completions API adapter."""

    backend = "openai"

    async def chat(self, system: str, user_message: str) -> str:
        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user_message},
            ],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        data = await self._post_json(f"{self.config.base_url}/chat/completions", payload, headers)

        choices = data.get("choices")
        if not isinstance(choices, list):
            raise ChatError(self.backend, "response is missing 'choices'")
        if not choices:
            return self._no_response()
        try:
            content = choices[0]["message"]["content"]
        except (KeyError, TypeError) as exc:
            raise ChatError(self.backend, "choice is missing 'message.content'", exc) from exc
        if content is None:
            return self._no_response()
        return str(content)


class AnthropicChat(ChatClient):
    """Messages API adapter."""

    backend = "anthropic"

    async def chat(self, system: str, user_message: str) -> str:
        payload = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "system": system,
            "messages": [{"role": "user", "content": user_message}],
        }
        headers = {
            "x-api-key": self.config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
        data = await self._post_json(f"{self.config.base_url}/messages", payload, headers)

        blocks: Any = data.get("content")
        if not isinstance(blocks, list):
            raise ChatError(self.backend, "response is missing 'content'")
        if not blocks:
            return self._no_response()
        text = blocks[0].get("text") if isinstance(blocks[0], dict) else None
        if not isinstance(text, str):
            raise ChatError(self.backend, "first content block has no text")
        return text


CHAT_BACKENDS: Dict[Provider, Type[ChatClient]] = {
    Provider.OPENAI: OpenAIChat,
    Provider.ANTHROPIC: AnthropicChat,
}


def create_chat_client(
    config: LLMConfig, session: Optional[aiohttp.ClientSession] = None
) -> ChatClient:
    """Instantiate the adapter registered for ``config.provider``."""

    client_cls = CHAT_BACKENDS[config.provider]
    LOGGER.debug("Using %s backend with model %s", client_cls.backend, config.model)
    return client_cls(config, session=session)
