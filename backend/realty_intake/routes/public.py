# /realty_intake/routes/public.py

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from datetime import datetime

from realty_intake.config import strings
from realty_intake.config.settings import settings
from realty_intake.services.airtable_service import lead_service
from realty_intake.services.session_store import session_store
from realty_intake.services.whatsapp_service import whatsapp_service
from realty_intake.utils.dependencies import verify_metrics_access

# Public endpoints that need no authentication: the root acknowledgment and
# health check. The /metrics endpoint is protected by an API key when set.

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root():
    """Root endpoint."""
    return strings.ROOT_ACK


@router.get("/health", summary="Basic Health Check")
async def health_check():
    """Basic health check for load balancers."""
    return {
        "status": "healthy",
        "active_sessions": len(session_store),
        "record_store": "configured" if settings.airtable_configured else "not_configured",
        "circuits": {
            "whatsapp": whatsapp_service.circuit_breaker.snapshot(),
            "airtable": lead_service.circuit_breaker.snapshot(),
        },
        "timestamp": datetime.utcnow(),
    }


@router.get("/metrics", tags=["Monitoring"])
async def metrics(_: None = Depends(verify_metrics_access)):
    """Prometheus metrics endpoint."""
    return PlainTextResponse(generate_latest(), media_type=CONTENT_TYPE_LATEST)
