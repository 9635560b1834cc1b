"""Webhook gate for Fanvue message events.

Pipeline stages:
1. Signature lookup and verification over the raw body
2. JSON parse
3. Event classification
4. Message extraction and hand-off to the reply dispatcher

The gate answers as soon as the hand-off is queued; it never waits for the
reply pipeline.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from fanvoice.models import AuditEvent, AuditEventType, RiskLevel
from fanvoice.webhook import extract
from fanvoice.webhook.signature import (
    DEFAULT_SIGNATURE_HEADERS,
    SignatureVerifier,
    find_signature,
)

if TYPE_CHECKING:
    from fanvoice.audit.logger import AuditLogger
    from fanvoice.responder.dispatcher import ReplyDispatcher

logger = logging.getLogger(__name__)

ACK: dict[str, Any] = {"received": True}


@dataclass
class GateResponse:
    status_code: int
    body: dict[str, Any] = field(default_factory=lambda: dict(ACK))


def _error(status_code: int, message: str) -> GateResponse:
    return GateResponse(status_code=status_code, body={"error": message})


class WebhookGate:
    """Authenticates, classifies and hands off inbound webhook events."""

    def __init__(
        self,
        verifier: SignatureVerifier,
        dispatcher: ReplyDispatcher,
        signature_headers: Iterable[str] = DEFAULT_SIGNATURE_HEADERS,
        require_signature: bool = True,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._verifier = verifier
        self._dispatcher = dispatcher
        self._signature_headers = tuple(h.lower() for h in signature_headers)
        self._require_signature = require_signature
        self._audit = audit_logger

    async def handle(
        self, raw_body: bytes, headers: Mapping[str, str],
    ) -> GateResponse:
        try:
            return self._handle(raw_body, headers)
        except Exception:
            logger.exception("Webhook handling failed")
            return _error(500, "Internal error")

    def _handle(self, raw_body: bytes, headers: Mapping[str, str]) -> GateResponse:
        lowered = {k.lower(): v for k, v in headers.items()}
        logger.debug("Webhook headers: %s", sorted(lowered))

        signature = find_signature(lowered, self._signature_headers)
        if signature is None:
            if self._require_signature:
                logger.warning("Webhook rejected: missing signature header")
                self._log_signature_failure("missing_signature")
                return _error(400, "Missing signature")
            logger.warning("Webhook has no signature, accepting unverified")
            verified = False
        elif not self._verifier.verify(raw_body, signature):
            logger.warning("Webhook rejected: signature mismatch")
            self._log_signature_failure("signature_mismatch")
            return _error(401, "Invalid signature")
        else:
            verified = True

        try:
            payload = json.loads(raw_body)
        except ValueError:
            logger.warning("Webhook rejected: invalid JSON body")
            return _error(400, "Invalid JSON")
        logger.debug("Webhook payload: %s", payload)

        event = extract.event_type(payload)
        if self._audit:
            self._audit.log(AuditEvent(
                event_type=AuditEventType.WEBHOOK_RECEIVED,
                action="webhook",
                result="success",
                risk_level=RiskLevel.INFO,
                details={"event": event, "verified": verified},
            ))

        if not extract.is_message_event(event):
            return self._ignore(event, "unhandled_event")

        message = extract.extract_message(payload)
        if message is None:
            return self._ignore(event, "incomplete_message")

        logger.info(
            "Processing message in chat %s from %s", message.chat_id, message.user_id,
        )
        queued = self._dispatcher.submit(message)
        if queued and self._audit:
            self._audit.log(AuditEvent(
                event_type=AuditEventType.REPLY_DISPATCHED,
                chat_id=message.chat_id,
                user_id=message.user_id,
                action="dispatch",
                result="success",
                risk_level=RiskLevel.INFO,
            ))
        return GateResponse(status_code=200)

    def _ignore(self, event: str | None, reason: str) -> GateResponse:
        logger.info("Acknowledged without processing: event=%s reason=%s", event, reason)
        if self._audit:
            self._audit.log(AuditEvent(
                event_type=AuditEventType.EVENT_IGNORED,
                action="webhook",
                result="ignored",
                risk_level=RiskLevel.INFO,
                details={"event": event, "reason": reason},
            ))
        return GateResponse(status_code=200)

    def _log_signature_failure(self, reason: str) -> None:
        if self._audit:
            self._audit.log(AuditEvent(
                event_type=AuditEventType.SIGNATURE_FAILURE,
                action="verify_signature",
                result="failure",
                risk_level=RiskLevel.HIGH,
                details={"reason": reason},
            ))
