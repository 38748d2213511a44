# /realty_intake/utils/dependencies.py

import hmac
import hashlib
import secrets
import structlog
from fastapi import Request, HTTPException

from realty_intake.config.settings import settings
from realty_intake.utils.metrics import webhook_signature_counter

log = structlog.get_logger(__name__)


def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    if not signature or not signature.startswith("sha256="):
        return False
    expected_signature = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected_signature, signature[7:])


async def verify_webhook_signature(request: Request) -> bytes:
    """
    Returns the raw delivery body. When an app secret is configured the
    X-Hub-Signature-256 header must match it, otherwise the delivery is refused.
    """
    body = await request.body()
    if not settings.whatsapp_app_secret:
        return body

    signature = request.headers.get("x-hub-signature-256", "")
    if not verify_signature(body, signature, settings.whatsapp_app_secret):
        webhook_signature_counter.labels(status="invalid").inc()
        log.error("Invalid webhook signature.", signature=signature[:50])
        raise HTTPException(status_code=403, detail="Invalid signature")
    webhook_signature_counter.labels(status="valid").inc()
    return body


async def verify_metrics_access(request: Request):
    if settings.api_key:
        provided_key = request.headers.get("X-API-KEY")
        if not (provided_key and secrets.compare_digest(provided_key, settings.api_key)):
            raise HTTPException(status_code=403, detail="Invalid or missing API key")
