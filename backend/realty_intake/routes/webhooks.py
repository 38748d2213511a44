# /realty_intake/routes/webhooks.py

import json
import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse, PlainTextResponse

from realty_intake.config.settings import settings
from realty_intake.services import intake_service
from realty_intake.utils.dependencies import verify_webhook_signature
from realty_intake.utils.metrics import response_time_histogram

# WhatsApp webhook endpoints. The GET handshake is the only place a
# protocol-level error is returned; deliveries are always acknowledged so the
# provider never retries and duplicates side effects.

router = APIRouter(
    tags=["Webhooks"]
)

log = structlog.get_logger(__name__)


@router.get("/webhook")
async def verify_whatsapp_webhook(
    hub_mode: str = Query(None, alias="hub.mode"),
    hub_verify_token: str = Query(None, alias="hub.verify_token"),
    hub_challenge: str = Query(None, alias="hub.challenge")
):
    """WhatsApp webhook verification (GET request)."""
    if hub_mode == "subscribe" and hub_verify_token == settings.whatsapp_verify_token:
        log.info("WhatsApp webhook verification successful.")
        return PlainTextResponse(hub_challenge or "")
    log.error("WhatsApp webhook verification failed.", mode=hub_mode)
    raise HTTPException(status_code=403, detail="Forbidden")


@router.post("/webhook")
async def handle_whatsapp_webhook(verified_body: bytes = Depends(verify_webhook_signature)):
    """Handles one delivery inline and always acknowledges it."""
    with response_time_histogram.labels(endpoint="whatsapp_webhook").time():
        try:
            data = json.loads(verified_body.decode() or "{}")
        except (UnicodeDecodeError, json.JSONDecodeError):
            log.warning("Ignoring webhook delivery with an unreadable body.")
            return JSONResponse({"status": "success"})

        log.debug("Webhook payload", data=data)
        await intake_service.process_webhook_payload(data)
        return JSONResponse({"status": "success"})
