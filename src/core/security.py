"""Signature checks for webhook dispatches of a review."""

import hashlib
import hmac

from fastapi import Request

from src.config import settings
from src.core.exceptions import SignatureVerificationError
from src.core.logging import get_logger

logger = get_logger("security")

SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_PREFIX = "sha256="


def sign_payload(payload: bytes, secret: str) -> str:
    """Signature header value GitHub sends for ``payload``."""
    digest = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def signature_matches(payload: bytes, signature: str | None, secret: str) -> bool:
    return hmac.compare_digest(sign_payload(payload, secret), signature or "")


async def verified_body(request: Request) -> bytes:
    """FastAPI dependency returning the raw body of a correctly signed delivery.

    Without a configured webhook secret every delivery is accepted.

    Raises:
        SignatureVerificationError: If the signature header does not match
    """
    body = await request.body()
    secret = settings.github_webhook_secret
    if not secret:
        logger.warning("GITHUB_WEBHOOK_SECRET not set, accepting unsigned delivery")
        return body

    if not signature_matches(body, request.headers.get(SIGNATURE_HEADER), secret):
        logger.warning(f"Rejected delivery {request.headers.get('X-GitHub-Delivery')}: signature mismatch")
        raise SignatureVerificationError("GitHub webhook")
    return body
