"""Shared test fixtures for fanvoice."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from fanvoice.audit.logger import AuditLogger
from fanvoice.config import Settings
from fanvoice.models import FanMessage
from fanvoice.webhook.signature import compute_signature

SECRET = "test-signing-secret"


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


# --- Factory functions for test data ---


def make_settings(**kwargs: Any) -> Settings:
    defaults: dict[str, Any] = {
        "webhook_secret": SECRET,
        "openai_api_key": "sk-test",
        "elevenlabs_api_key": "el-test",
        "voice_id": "voice-123",
    }
    defaults.update(kwargs)
    return Settings(**defaults)


def make_fan_message(**kwargs: Any) -> FanMessage:
    defaults: dict[str, Any] = {"chat_id": "c1", "user_id": "u1", "text": "hi"}
    defaults.update(kwargs)
    return FanMessage(**defaults)


def make_message_payload(
    chat_id: str = "c1", text: str = "hi", event: str = "message.created",
) -> dict[str, Any]:
    return {"type": event, "message": {"chatId": chat_id, "text": text}}


def signed(payload: Any, secret: str = SECRET) -> tuple[bytes, dict[str, str]]:
    """Serialize ``payload`` and return it with a valid signature header."""
    body = json.dumps(payload).encode()
    return body, {"x-fanvue-signature": compute_signature(secret, body)}


def mock_async_client(**responses: Any) -> AsyncMock:
    """AsyncMock standing in for ``httpx.AsyncClient`` used as a context manager."""
    client = AsyncMock()
    for name, value in responses.items():
        method = getattr(client, name)
        if isinstance(value, (list, Exception)):
            method.side_effect = value
        else:
            method.return_value = value
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


def json_response(status_code: int, data: Any) -> httpx.Response:
    return httpx.Response(status_code, json=data)


def completion_response(content: Any) -> httpx.Response:
    return json_response(200, {"choices": [{"message": {"role": "assistant", "content": content}}]})
