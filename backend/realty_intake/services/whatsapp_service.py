# /realty_intake/services/whatsapp_service.py

import httpx
import logging
import re
import tenacity
from typing import Optional, List

from realty_intake.config.settings import settings
from realty_intake.models.flow import Choice
from realty_intake.utils.circuit_breaker import CircuitBreaker
from realty_intake.utils.alerting import alerting_service
from realty_intake.utils.metrics import outbound_message_counter

logger = logging.getLogger(__name__)

MAX_REPLY_BUTTONS = 3
MAX_LIST_ROWS = 10
BUTTON_TITLE_LIMIT = 20
LIST_ROW_TITLE_LIMIT = 24
LIST_ACTION_LABEL = "Ver opciones"


def clean_phone_number(phone: str) -> str:
    clean_phone = re.sub(r"[^\d+]", "", phone or "")
    if not clean_phone.startswith("+"):
        clean_phone = "+" + clean_phone.lstrip("+")
    return clean_phone


class WhatsAppService:
    """Outbound side of the WhatsApp Cloud API. Send failures are logged, never raised."""

    def __init__(self, access_token: str, phone_id: str, api_version: str = "v19.0"):
        self.access_token = access_token
        self.phone_id = phone_id
        self.http_client = httpx.AsyncClient(timeout=15.0)
        self.base_url = f"https://graph.facebook.com/{api_version}"
        self.circuit_breaker = CircuitBreaker("whatsapp")

    @tenacity.retry(
        retry=tenacity.retry_if_exception_type((httpx.RequestError, httpx.TimeoutException)),
        stop=tenacity.stop_after_attempt(3),
        wait=tenacity.wait_exponential(multiplier=2, min=1, max=10),
        before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def resilient_api_call(self, func, *args, **kwargs):
        return await self.circuit_breaker.call(func, *args, **kwargs)

    async def send_whatsapp_request(self, payload: dict) -> Optional[str]:
        """Generic method to send a request to the WhatsApp messages API."""
        kind = payload.get("type", "unknown")
        to_phone = payload.get("to")
        try:
            if not to_phone:
                logger.error(f"send_whatsapp_request_invalid_phone: {to_phone}")
                outbound_message_counter.labels(kind=kind, status="invalid").inc()
                return None

            url = f"{self.base_url}/{self.phone_id}/messages"
            headers = {"Authorization": f"Bearer {self.access_token}", "Content-Type": "application/json"}
            response = await self.resilient_api_call(self.http_client.post, url, json=payload, headers=headers)

            if response.status_code == 200:
                message_id = (response.json().get("messages") or [{}])[0].get("id")
                logger.info(f"WhatsApp {kind} message sent to {to_phone}, wamid: {message_id}")
                outbound_message_counter.labels(kind=kind, status="sent").inc()
                return message_id

            try:
                error_message = (response.json().get("error") or {}).get("message", "Unknown error")
            except ValueError:
                error_message = response.text
            logger.error(f"whatsapp_send_failed to {to_phone}: {response.status_code} - {error_message}")
            outbound_message_counter.labels(kind=kind, status="failed").inc()
            if response.status_code == 401:
                await alerting_service.send_critical_alert("WhatsApp authentication failed", {"error": "Invalid access token"})
            return None
        except Exception as e:
            logger.error(f"whatsapp_send_error to {to_phone}: {e}", exc_info=True)
            outbound_message_counter.labels(kind=kind, status="error").inc()
            return None

    async def send_message(self, to_phone: str, message: str) -> Optional[str]:
        """Sends a plain text message."""
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": clean_phone_number(to_phone),
            "type": "text",
            "text": {"body": message[:4096]},
        }
        return await self.send_whatsapp_request(payload)

    async def send_buttons(self, to_phone: str, message: str, choices: List[Choice]) -> Optional[str]:
        """
        Sends a body text with fixed choices. Up to three choices go out as
        reply buttons; larger sets (up to ten) go out as an interactive list,
        whose replies arrive as `list_reply`.
        """
        if not choices:
            return await self.send_message(to_phone, message)

        if len(choices) <= MAX_REPLY_BUTTONS:
            interactive = {
                "type": "button",
                "body": {"text": message[:1024]},
                "action": {"buttons": [
                    {"type": "reply", "reply": {"id": c.id, "title": c.title[:BUTTON_TITLE_LIMIT]}}
                    for c in choices
                ]},
            }
        else:
            if len(choices) > MAX_LIST_ROWS:
                logger.warning(f"Truncating {len(choices)} choices to {MAX_LIST_ROWS} for {to_phone}")
            interactive = {
                "type": "list",
                "body": {"text": message[:1024]},
                "action": {
                    "button": LIST_ACTION_LABEL,
                    "sections": [{
                        "title": LIST_ACTION_LABEL,
                        "rows": [
                            {"id": c.id, "title": c.title[:LIST_ROW_TITLE_LIMIT]}
                            for c in choices[:MAX_LIST_ROWS]
                        ],
                    }],
                },
            }

        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": clean_phone_number(to_phone),
            "type": "interactive",
            "interactive": interactive,
        }
        return await self.send_whatsapp_request(payload)

    async def close(self):
        await self.http_client.aclose()


# Globally accessible instance
whatsapp_service = WhatsAppService(
    settings.whatsapp_access_token,
    settings.whatsapp_phone_id,
    settings.graph_api_version,
)
