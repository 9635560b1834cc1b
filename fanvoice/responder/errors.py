"""Errors raised by the reply pipeline steps."""

from __future__ import annotations


class ReplyPipelineError(Exception):
    """A reply pipeline step failed; the rest of the run is abandoned."""

    step = "pipeline"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CompletionError(ReplyPipelineError):
    step = "completion"


class SpeechSynthesisError(ReplyPipelineError):
    step = "speech"


class MediaSendError(ReplyPipelineError):
    step = "media_send"
