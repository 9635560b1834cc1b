"""Field extraction for Fanvue message webhooks.

Payloads arrive in more than one shape: the event type may be ``type`` or
``event``, the message may sit under ``message`` or ``data``, and the chat id
may be ``chatId`` or ``chat_id``. Each logical field is an ordered table of
rules; the first rule that yields a value wins.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fanvoice.models import UNKNOWN_USER, FanMessage

Rule = Callable[[Any], Any]

MESSAGE_EVENTS = frozenset({"message.created", "message.received"})


def _path(*keys: str) -> Rule:
    """Rule that walks nested dicts by key, yielding None on any miss."""

    def rule(payload: Any) -> Any:
        node = payload
        for key in keys:
            if not isinstance(node, dict):
                return None
            node = node.get(key)
        return node

    return rule


def _as_text(value: Any) -> str | None:
    # bool is an int subclass but never a meaningful id
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value:
        return value
    return None


def first_present(rules: tuple[Rule, ...], payload: Any) -> str | None:
    for rule in rules:
        value = _as_text(rule(payload))
        if value is not None:
            return value
    return None


EVENT_TYPE_RULES: tuple[Rule, ...] = (_path("type"), _path("event"))

CHAT_ID_RULES: tuple[Rule, ...] = (
    _path("message", "chatId"),
    _path("message", "chat_id"),
    _path("data", "chatId"),
    _path("data", "chat_id"),
    _path("chatId"),
)

SENDER_RULES: tuple[Rule, ...] = (
    _path("message", "sender", "uuid"),
    _path("data", "sender", "uuid"),
    _path("sender", "uuid"),
)

TEXT_RULES: tuple[Rule, ...] = (
    _path("message", "text"),
    _path("data", "text"),
    _path("text"),
)


def event_type(payload: Any) -> str | None:
    return first_present(EVENT_TYPE_RULES, payload)


def is_message_event(event: str | None) -> bool:
    return event in MESSAGE_EVENTS


def extract_message(payload: Any) -> FanMessage | None:
    """Normalize a message event, or None when chat id or text is missing."""
    chat_id = first_present(CHAT_ID_RULES, payload)
    text = first_present(TEXT_RULES, payload)
    if not chat_id or not text:
        return None
    user_id = first_present(SENDER_RULES, payload) or UNKNOWN_USER
    return FanMessage(chat_id=chat_id, user_id=user_id, text=text)
