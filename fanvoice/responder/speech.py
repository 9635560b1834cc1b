"""Text-to-speech via the ElevenLabs API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from fanvoice.responder.errors import SpeechSynthesisError

logger = logging.getLogger(__name__)


class SpeechClient:
    """Turns reply text into MP3 audio with a fixed voice."""

    def __init__(
        self,
        api_key: str,
        voice_id: str,
        base_url: str = "https://api.elevenlabs.io",
        model_id: str = "eleven_multilingual_v2",
        stability: float = 0.5,
        similarity_boost: float = 0.75,
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/v1/text-to-speech/{voice_id}"
        self._model_id = model_id
        self._stability = stability
        self._similarity_boost = similarity_boost
        self._timeout = timeout

    def build_request(self, text: str) -> dict[str, Any]:
        return {
            "text": text,
            "model_id": self._model_id,
            "voice_settings": {
                "stability": self._stability,
                "similarity_boost": self._similarity_boost,
            },
        }

    async def synthesize(self, text: str) -> bytes:
        headers = {
            "xi-api-key": self._api_key,
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    self._url,
                    json=self.build_request(text),
                    headers=headers,
                    timeout=self._timeout,
                )
        except httpx.HTTPError as exc:
            raise SpeechSynthesisError(f"Speech request failed: {exc}") from exc

        if not resp.is_success:
            raise SpeechSynthesisError(
                f"Speech API returned {resp.status_code}",
                status_code=resp.status_code,
            )
        if not resp.content:
            raise SpeechSynthesisError("Speech API returned no audio")

        logger.debug("Synthesized %d bytes of audio", len(resp.content))
        return resp.content
