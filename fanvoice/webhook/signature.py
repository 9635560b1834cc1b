"""Webhook signature verification.

Fanvue signs the raw request body with HMAC-SHA256 and the webhook signing
secret, hex encoded. The header carrying it is looked up from an ordered list
of candidate names, and the verifier is pluggable so a different scheme can be
dropped in without touching the gate.
"""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Iterable, Mapping
from typing import Protocol

DEFAULT_SIGNATURE_HEADERS: tuple[str, ...] = ("x-fanvue-signature", "x-signature")


class SignatureVerifier(Protocol):
    def verify(self, body: bytes, signature: str) -> bool: ...


def compute_signature(secret: str, body: bytes) -> str:
    """Lowercase hex HMAC-SHA256 of ``body`` keyed with ``secret``."""
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def find_signature(
    headers: Mapping[str, str], header_names: Iterable[str],
) -> str | None:
    """Return the first non-empty value among ``header_names``.

    ``headers`` must already have lowercase keys.
    """
    for name in header_names:
        value = headers.get(name.lower(), "").strip()
        if value:
            return value
    return None


class HmacSha256Verifier:
    """HMAC-SHA256 over the exact body bytes, compared in constant time."""

    def __init__(self, secret: str, prefix: str = "sha256=") -> None:
        self._secret = secret
        self._prefix = prefix

    def verify(self, body: bytes, signature: str) -> bool:
        if self._prefix and signature.startswith(self._prefix):
            signature = signature[len(self._prefix):]
        expected = compute_signature(self._secret, body)
        return hmac.compare_digest(signature.lower().encode(), expected.encode())
