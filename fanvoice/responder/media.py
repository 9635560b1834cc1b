"""Delivery of synthesized voice replies back into a Fanvue chat.

:class:`MediaSender` is the seam between the reply pipeline and the
platform. :class:`LoggingMediaSender` only records what would have been sent;
:class:`FanvueMediaSender` uploads the audio and posts it to the chat.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from fanvoice.models import MediaSendResult
from fanvoice.responder.errors import MediaSendError

logger = logging.getLogger(__name__)

_UUID_KEYS = ("uuid", "mediaUuid", "id")


class MediaSender(Protocol):
    async def send_voice_reply(
        self, chat_id: str, audio: bytes, text: str | None = None,
    ) -> MediaSendResult: ...


class LoggingMediaSender:
    """Logs the voice reply instead of delivering it."""

    async def send_voice_reply(
        self, chat_id: str, audio: bytes, text: str | None = None,
    ) -> MediaSendResult:
        logger.info(
            "Voice reply ready for chat %s (%d bytes); delivery not configured",
            chat_id, len(audio),
        )
        return MediaSendResult(delivered=False)


def _media_uuid(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    for key in _UUID_KEYS:
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class FanvueMediaSender:
    """Uploads audio to Fanvue and sends it as a message in the chat."""

    def __init__(
        self,
        access_token: str,
        api_base: str = "https://api.fanvue.com",
        timeout: float = 30.0,
    ) -> None:
        self._access_token = access_token
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    async def send_voice_reply(
        self, chat_id: str, audio: bytes, text: str | None = None,
    ) -> MediaSendResult:
        headers = {"Authorization": f"Bearer {self._access_token}"}
        try:
            async with httpx.AsyncClient(verify=True) as client:
                upload = await client.post(
                    f"{self._api_base}/media/uploads",
                    files={"file": ("reply.mp3", audio, "audio/mpeg")},
                    headers=headers,
                    timeout=self._timeout,
                )
                if not upload.is_success:
                    raise MediaSendError(
                        f"Media upload returned {upload.status_code}",
                        status_code=upload.status_code,
                    )
                media_uuid = _media_uuid(upload.json())
                if media_uuid is None:
                    raise MediaSendError("Media upload response has no media uuid")

                payload: dict[str, Any] = {"mediaUuids": [media_uuid]}
                if text:
                    payload["text"] = text
                sent = await client.post(
                    f"{self._api_base}/chats/{chat_id}/message",
                    json=payload,
                    headers=headers,
                    timeout=self._timeout,
                )
        except httpx.HTTPError as exc:
            raise MediaSendError(f"Media delivery failed: {exc}") from exc
        except ValueError as exc:
            raise MediaSendError("Media upload response is not JSON") from exc

        if not sent.is_success:
            raise MediaSendError(
                f"Chat message send returned {sent.status_code}",
                status_code=sent.status_code,
            )

        message_uuid: str | None = None
        try:
            message_uuid = _media_uuid(sent.json())
        except ValueError:
            pass
        return MediaSendResult(
            delivered=True, media_uuid=media_uuid, message_uuid=message_uuid,
        )
