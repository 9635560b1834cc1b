"""Reply pipeline: completion, speech synthesis, delivery.

Each step's output feeds the next, so the steps run strictly in sequence.
A failing step ends the run. Nothing is retried and nothing propagates: the
webhook that triggered the run has already been acknowledged, so failures are
logged and written to the audit log as ``reply_failed``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fanvoice.models import AuditEvent, AuditEventType, FanMessage, ReplyOutcome, RiskLevel
from fanvoice.responder.errors import ReplyPipelineError
from fanvoice.responder.media import LoggingMediaSender, MediaSender

if TYPE_CHECKING:
    from fanvoice.audit.logger import AuditLogger
    from fanvoice.responder.completion import CompletionClient
    from fanvoice.responder.speech import SpeechClient

logger = logging.getLogger(__name__)


class ReplyOrchestrator:
    """Produces and delivers a voice reply for one fan message."""

    def __init__(
        self,
        completion: CompletionClient,
        speech: SpeechClient,
        media_sender: MediaSender | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._completion = completion
        self._speech = speech
        self._media_sender = media_sender or LoggingMediaSender()
        self._audit = audit_logger

    async def respond(self, message: FanMessage) -> ReplyOutcome | None:
        """Run the pipeline; returns None if any step failed."""
        logger.info(
            "Generating reply for chat %s from %s", message.chat_id, message.user_id,
        )
        try:
            reply_text = await self._completion.complete(message.text)
            audio = await self._speech.synthesize(reply_text)
            delivery = await self._media_sender.send_voice_reply(
                message.chat_id, audio, text=reply_text,
            )
        except ReplyPipelineError as exc:
            logger.error(
                "Reply for chat %s failed at %s: %s", message.chat_id, exc.step, exc,
            )
            self.record_failure(message, exc.step, str(exc), exc.status_code)
            return None

        outcome = ReplyOutcome(
            chat_id=message.chat_id,
            reply_text=reply_text,
            audio_bytes=len(audio),
            delivery=delivery,
        )
        self._record(AuditEvent(
            event_type=AuditEventType.REPLY_COMPLETED,
            chat_id=message.chat_id,
            user_id=message.user_id,
            action="reply",
            result="success",
            risk_level=RiskLevel.INFO,
            details={
                "audio_bytes": outcome.audio_bytes,
                "delivered": delivery.delivered,
                "media_uuid": delivery.media_uuid,
            },
        ))
        return outcome

    def record_failure(
        self,
        message: FanMessage,
        step: str,
        error: str,
        status_code: int | None = None,
    ) -> None:
        """Write the dead-letter record for a failed reply."""
        self._record(AuditEvent(
            event_type=AuditEventType.REPLY_FAILED,
            chat_id=message.chat_id,
            user_id=message.user_id,
            action="reply",
            result="failure",
            risk_level=RiskLevel.MEDIUM,
            details={
                "step": step,
                "error": error,
                "status_code": status_code,
                "text": message.text,
            },
        ))

    def _record(self, event: AuditEvent) -> None:
        # an audit write failure must not end the reply worker
        if not self._audit:
            return
        try:
            self._audit.log(event)
        except Exception:
            logger.exception("Audit write failed for %s", event.event_type.value)
