# /realty_intake/services/intake_service.py

import logging
from typing import Any, Dict

from realty_intake.services.airtable_service import lead_service
from realty_intake.services.session_store import SessionStore, session_store
from realty_intake.services.whatsapp_service import whatsapp_service
from realty_intake.utils.alerting import alerting_service
from realty_intake.utils.metrics import message_counter
from realty_intake.workflows.engine import ConversationEngine
from realty_intake.workflows.normalizer import normalize_delivery

# This service is the outermost processing boundary for webhook deliveries:
# it normalizes the payload, serializes work per actor and makes sure no
# processing failure ever escapes back to the webhook route.

logger = logging.getLogger(__name__)


async def process_webhook_payload(
    payload: Dict[str, Any],
    engine: ConversationEngine | None = None,
    store: SessionStore | None = None,
) -> None:
    """
    Main function to process an incoming WhatsApp delivery.
    Only the first message unit of a batch is handled.
    """
    engine = engine or conversation_engine
    store = store or engine.store
    try:
        inbound = normalize_delivery(payload)
        if inbound is None:
            logger.debug("Delivery without message units, nothing to do.")
            return

        logger.info(f"Processing {inbound.message_type} message {inbound.message_id} from {inbound.actor_id}")
        async with store.lock(inbound.actor_id):
            await engine.handle(inbound)
        message_counter.labels(status="processed", message_type=inbound.message_type).inc()

    except Exception as e:
        message_counter.labels(status="error", message_type="unknown").inc()
        logger.error(f"Error in process_webhook_payload: {e}", exc_info=True)


# Globally accessible instance
conversation_engine = ConversationEngine(
    session_store,
    whatsapp_service,
    lead_service,
    alerts=alerting_service,
)
