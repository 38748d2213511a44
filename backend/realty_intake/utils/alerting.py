# /realty_intake/utils/alerting.py

import httpx
import logging
from typing import Optional, Dict, Any
from datetime import datetime

from realty_intake.config.settings import settings

# This utility sends critical alerts to an external webhook so that leads the
# record store rejected still reach a human for manual follow-up.

logger = logging.getLogger(__name__)


class AlertingService:
    def __init__(self, webhook_url: Optional[str]):
        self.webhook_url = webhook_url
        self.client = httpx.AsyncClient(timeout=5.0) if webhook_url else None

    async def send_critical_alert(self, error: str, context: Dict[str, Any]):
        if not self.client:
            return
        try:
            alert_data = {
                "severity": "critical", "service": "realty-intake-bot",
                "error": error, "context": context, "timestamp": datetime.utcnow().isoformat(),
                "environment": settings.environment
            }
            await self.client.post(self.webhook_url, json=alert_data)
        except Exception as e:
            logger.error(f"Failed to send critical alert: {e}")

    async def send_lead_failure_alert(self, actor_id: str, flow: str, error: Any, answers: Dict[str, str]):
        """Reports a lead the record store did not accept, with everything needed to re-enter it by hand."""
        await self.send_critical_alert(
            "Lead submission to record store failed",
            {"actor_id": actor_id, "flow": flow, "error": str(error)[:500], "answers": answers},
        )

    async def cleanup(self):
        if self.client:
            await self.client.aclose()


# Globally accessible instance
alerting_service = AlertingService(settings.alerting_webhook_url)
