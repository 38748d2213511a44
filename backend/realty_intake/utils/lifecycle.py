# /realty_intake/utils/lifecycle.py

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from realty_intake.config.settings import settings
from realty_intake.utils.logging import setup_logging
from realty_intake.utils.alerting import alerting_service
from realty_intake.utils.tasks import run_session_sweeper
from realty_intake.services.airtable_service import lead_service
from realty_intake.services.whatsapp_service import whatsapp_service

# This file manages the application's lifespan: logging setup and the idle
# session sweeper on startup, closing outbound HTTP clients on shutdown.

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    setup_logging()

    logger.info("Application starting up...")
    if not settings.airtable_configured:
        logger.warning("AIRTABLE_API_KEY / AIRTABLE_BASE_ID missing: leads will not be stored.")

    sweeper = None
    if settings.session_idle_timeout_seconds > 0:
        sweeper = asyncio.create_task(run_session_sweeper())

    logger.info("Application startup complete. Ready to accept requests.")

    yield  # Application is now running

    logger.info("Application shutting down...")

    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    await whatsapp_service.close()
    await lead_service.close()
    await alerting_service.cleanup()
