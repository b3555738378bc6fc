"""Signature and origin checks for inbound webhooks.

Signatures are hex HMAC-SHA256 digests of the raw request body, compared in
constant time. An unset secret disables the check (insecure mode, logged on
every request).
"""

import hashlib
import hmac
import logging
from collections.abc import Collection
from typing import Optional

from fastapi import Request

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


def sign_payload(body: bytes, secret: str) -> str:
    """Generate the HMAC-SHA256 hex signature for a webhook body."""
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    if not secret:
        logger.warning("Webhook secret not configured, skipping signature validation")
        return True

    if not signature:
        logger.warning("Missing webhook signature")
        return False

    supplied = signature.strip().lower()
    if supplied.startswith(SIGNATURE_PREFIX):
        supplied = supplied[len(SIGNATURE_PREFIX):]

    expected = sign_payload(body, secret)
    if not hmac.compare_digest(expected.encode(), supplied.encode()):
        logger.warning("Invalid webhook signature")
        return False
    return True


def verify_origin(origin: str, allowed: Collection[str]) -> bool:
    """An empty allow-list accepts every origin."""
    if not allowed:
        return True
    if origin not in allowed:
        logger.warning(f"Unauthorized webhook origin: {origin}")
        return False
    return True


def client_origin(request: Request) -> str:
    """Peer address of the caller, else the first X-Forwarded-For hop."""
    if request.client and request.client.host:
        return request.client.host
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    return first_hop or "unknown"
