"""Runtime configuration, read once from the environment at startup."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fanvoice.webhook.signature import DEFAULT_SIGNATURE_HEADERS

# env var -> Settings field; startup fails if any of these is unset
REQUIRED_ENV: dict[str, str] = {
    "FANVUE_WEBHOOK_SIGNING_SECRET": "webhook_secret",
    "OPENAI_API_KEY": "openai_api_key",
    "ELEVENLABS_API_KEY": "elevenlabs_api_key",
    "ELEVENLABS_VOICE_ID": "voice_id",
}

OPTIONAL_ENV: dict[str, str] = {
    "FANVUE_REQUIRE_SIGNATURE": "require_signature",
    "FANVUE_ACCESS_TOKEN": "fanvue_access_token",
    "FANVUE_WEBHOOK_PATH": "webhook_path",
    "FANVUE_API_BASE": "fanvue_api_base",
    "OPENAI_BASE_URL": "openai_base_url",
    "OPENAI_MODEL": "openai_model",
    "OPENAI_MAX_TOKENS": "max_tokens",
    "OPENAI_TEMPERATURE": "temperature",
    "ELEVENLABS_BASE_URL": "elevenlabs_base_url",
    "ELEVENLABS_MODEL_ID": "elevenlabs_model_id",
    "ELEVENLABS_STABILITY": "stability",
    "ELEVENLABS_SIMILARITY_BOOST": "similarity_boost",
    "HTTP_TIMEOUT_SECONDS": "http_timeout_seconds",
    "REPLY_QUEUE_SIZE": "reply_queue_size",
    "REPLY_WORKERS": "reply_workers",
    "PERSONA_PATH": "persona_path",
    "AUDIT_LOG_PATH": "audit_log_path",
    "AUDIT_LOG_MAX_BYTES": "audit_log_max_bytes",
    "AUDIT_LOG_BACKUP_COUNT": "audit_log_backup_count",
    "LOG_LEVEL": "log_level",
}

WEBHOOK_PATH = "/api/webhook/fanvue-message"

_SECRET_FIELDS = frozenset({
    "webhook_secret", "openai_api_key", "elevenlabs_api_key", "fanvue_access_token",
})


class ConfigError(Exception):
    """Raised when the environment cannot produce a valid configuration."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    webhook_secret: str = Field(min_length=1)
    openai_api_key: str = Field(min_length=1)
    elevenlabs_api_key: str = Field(min_length=1)
    voice_id: str = Field(min_length=1)

    signature_headers: tuple[str, ...] = DEFAULT_SIGNATURE_HEADERS
    require_signature: bool = True
    webhook_path: str = Field(default=WEBHOOK_PATH, pattern=r"^/\S*$")

    fanvue_access_token: str | None = None
    fanvue_api_base: str = "https://api.fanvue.com"

    openai_base_url: str = "https://api.openai.com"
    openai_model: str = "gpt-4o-mini"
    max_tokens: int = Field(default=150, gt=0)
    temperature: float = Field(default=0.9, ge=0.0, le=2.0)

    elevenlabs_base_url: str = "https://api.elevenlabs.io"
    elevenlabs_model_id: str = "eleven_multilingual_v2"
    stability: float = Field(default=0.5, ge=0.0, le=1.0)
    similarity_boost: float = Field(default=0.75, ge=0.0, le=1.0)

    http_timeout_seconds: float = Field(default=30.0, gt=0)
    reply_queue_size: int = Field(default=100, gt=0)
    reply_workers: int = Field(default=1, gt=0)

    persona_path: str | None = None
    audit_log_path: str | None = None
    audit_log_max_bytes: int = Field(default=10_485_760, gt=0)
    audit_log_backup_count: int = Field(default=5, gt=0)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables, failing fast on gaps."""
        env = os.environ if environ is None else environ

        missing = [name for name in REQUIRED_ENV if not env.get(name, "").strip()]
        if missing:
            raise ConfigError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing=missing,
            )

        values: dict[str, object] = {
            field: env[name].strip() for name, field in REQUIRED_ENV.items()
        }
        for name, field in OPTIONAL_ENV.items():
            raw = env.get(name, "").strip()
            if raw:
                values[field] = raw

        headers = env.get("FANVUE_SIGNATURE_HEADERS", "")
        names = tuple(h.strip().lower() for h in headers.split(",") if h.strip())
        if names:
            values["signature_headers"] = names

        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
            raise ConfigError(
                f"Invalid configuration for: {', '.join(fields)}",
            ) from exc

    def redacted(self) -> dict[str, object]:
        """Settings as a dict with secrets masked, safe to print or log."""
        data = self.model_dump()
        for field in _SECRET_FIELDS:
            if data.get(field):
                data[field] = "***"
        return data
