"""FastAPI application hosting the Fanvue webhook."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fanvoice.audit.logger import AuditLogger
from fanvoice.config import Settings
from fanvoice.responder.completion import CompletionClient
from fanvoice.responder.dispatcher import ReplyDispatcher
from fanvoice.responder.media import FanvueMediaSender, LoggingMediaSender, MediaSender
from fanvoice.responder.orchestrator import ReplyOrchestrator
from fanvoice.responder.persona import load_persona
from fanvoice.responder.speech import SpeechClient
from fanvoice.webhook.gate import WebhookGate
from fanvoice.webhook.signature import HmacSha256Verifier

logger = logging.getLogger(__name__)


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    return create_app(Settings.from_env())


def build_orchestrator(
    settings: Settings, audit_logger: AuditLogger | None = None,
) -> ReplyOrchestrator:
    completion = CompletionClient(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=settings.openai_model,
        persona=load_persona(settings.persona_path),
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout=settings.http_timeout_seconds,
    )
    speech = SpeechClient(
        api_key=settings.elevenlabs_api_key,
        voice_id=settings.voice_id,
        base_url=settings.elevenlabs_base_url,
        model_id=settings.elevenlabs_model_id,
        stability=settings.stability,
        similarity_boost=settings.similarity_boost,
        timeout=settings.http_timeout_seconds,
    )
    media_sender: MediaSender
    if settings.fanvue_access_token:
        media_sender = FanvueMediaSender(
            access_token=settings.fanvue_access_token,
            api_base=settings.fanvue_api_base,
            timeout=settings.http_timeout_seconds,
        )
    else:
        media_sender = LoggingMediaSender()
    return ReplyOrchestrator(completion, speech, media_sender, audit_logger)


def create_app(
    settings: Settings,
    dispatcher: ReplyDispatcher | None = None,
    audit_logger: AuditLogger | None = None,
) -> FastAPI:
    """Create the webhook app; builds the reply pipeline unless one is given."""
    if audit_logger is None and settings.audit_log_path:
        audit_logger = AuditLogger(
            settings.audit_log_path,
            max_bytes=settings.audit_log_max_bytes,
            backup_count=settings.audit_log_backup_count,
        )
    if dispatcher is None:
        dispatcher = ReplyDispatcher(
            build_orchestrator(settings, audit_logger),
            max_queue=settings.reply_queue_size,
            workers=settings.reply_workers,
            audit_logger=audit_logger,
        )

    gate = WebhookGate(
        verifier=HmacSha256Verifier(settings.webhook_secret),
        dispatcher=dispatcher,
        signature_headers=settings.signature_headers,
        require_signature=settings.require_signature,
        audit_logger=audit_logger,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        dispatcher.start()
        try:
            yield
        finally:
            await dispatcher.stop()

    app = FastAPI(docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.gate = gate
    app.state.dispatcher = dispatcher

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post(settings.webhook_path)
    async def fanvue_message(request: Request) -> JSONResponse:
        # Raw bytes: the signature covers the body exactly as sent
        body = await request.body()
        result = await gate.handle(body, request.headers)
        return JSONResponse(result.body, status_code=result.status_code)

    return app
