"""Reply text generation via an OpenAI-compatible chat completions API."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from fanvoice.responder.errors import CompletionError
from fanvoice.responder.persona import DEFAULT_PERSONA, build_messages

logger = logging.getLogger(__name__)

DEFAULT_REPLY = "Hey you, thanks for the message. I'll get back to you properly in a bit."


class CompletionClient:
    """Asks the language model for a short in-character reply."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com",
        model: str = "gpt-4o-mini",
        persona: str = DEFAULT_PERSONA,
        max_tokens: int = 150,
        temperature: float = 0.9,
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/v1/chat/completions"
        self._model = model
        self._persona = persona
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout = timeout

    def build_request(self, fan_text: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": build_messages(self._persona, fan_text),
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
        }

    async def complete(self, fan_text: str) -> str:
        """Return the reply text, or :data:`DEFAULT_REPLY` if the model gave none.

        Raises CompletionError on transport failures and non-2xx responses.
        """
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    self._url,
                    json=self.build_request(fan_text),
                    headers=headers,
                    timeout=self._timeout,
                )
        except httpx.HTTPError as exc:
            raise CompletionError(f"Completion request failed: {exc}") from exc

        if not resp.is_success:
            raise CompletionError(
                f"Completion API returned {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (json.JSONDecodeError, IndexError, KeyError, TypeError):
            content = None

        reply = content.strip() if isinstance(content, str) else ""
        if not reply:
            logger.warning("Completion returned no content, using default reply")
            return DEFAULT_REPLY
        return reply
