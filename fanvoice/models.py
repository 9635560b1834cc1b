"""Shared Pydantic data models for fanvoice."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class AuditEventType(str, Enum):
    WEBHOOK_RECEIVED = "webhook_received"
    SIGNATURE_FAILURE = "signature_failure"
    EVENT_IGNORED = "event_ignored"
    REPLY_DISPATCHED = "reply_dispatched"
    REPLY_DROPPED = "reply_dropped"
    REPLY_COMPLETED = "reply_completed"
    REPLY_FAILED = "reply_failed"


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


# --- Message Models ---


UNKNOWN_USER = "unknown"


class FanMessage(BaseModel):
    """A fan's chat message, normalized from any webhook payload shape."""

    model_config = ConfigDict(frozen=True)

    chat_id: str = Field(min_length=1)
    user_id: str = UNKNOWN_USER
    text: str = Field(min_length=1)


class MediaSendResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    delivered: bool
    media_uuid: str | None = None
    message_uuid: str | None = None


class ReplyOutcome(BaseModel):
    """What one run of the reply pipeline produced."""

    model_config = ConfigDict(frozen=True)

    chat_id: str
    reply_text: str
    audio_bytes: int = Field(ge=0)
    delivery: MediaSendResult


# --- Audit Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    chat_id: str | None = None
    user_id: str | None = None
    action: str
    result: str  # "success" | "failure" | "ignored" | "dropped"
    risk_level: RiskLevel
    details: dict[str, object] | None = None
