"""Webhook signature verification (HMAC-SHA-256, GitHub style)."""

import hashlib
import hmac

SIGNATURE_HEADER = "x-hub-signature-256"
SIGNATURE_PREFIX = "sha256="


def sign_payload(secret: str, body: bytes) -> str:
    """Return the ``sha256=<hex>`` signature header value for a body."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(secret: str, header: str | None, body: bytes) -> bool:
    """
    Verify a webhook signature header against the raw request body.

    Uses a constant-time comparison. A missing secret or header, or a
    header without the ``sha256=`` prefix, never verifies.
    """
    if not secret or not header:
        return False
    if not header.startswith(SIGNATURE_PREFIX):
        return False

    expected = sign_payload(secret, body)
    return hmac.compare_digest(expected.encode("utf-8"), header.strip().encode("utf-8"))
