# /realty_intake/utils/tasks.py

import asyncio
import logging
from datetime import timedelta

from realty_intake.config.settings import settings
from realty_intake.services.session_store import SessionStore, session_store

logger = logging.getLogger(__name__)


async def sweep_idle_sessions(store: SessionStore = session_store,
                              idle_timeout_seconds: int | None = None) -> int:
    """
    Removes conversations abandoned for longer than the idle timeout.
    A timeout of 0 disables expiry.
    """
    timeout = settings.session_idle_timeout_seconds if idle_timeout_seconds is None else idle_timeout_seconds
    if timeout <= 0:
        return 0
    try:
        return store.sweep_expired(timedelta(seconds=timeout))
    except Exception:
        logger.error("An error occurred during the idle session sweep.", exc_info=True)
        return 0


async def run_session_sweeper(store: SessionStore = session_store,
                              interval_seconds: int | None = None,
                              idle_timeout_seconds: int | None = None):
    """Background loop started by the application lifespan; stops when cancelled."""
    interval = interval_seconds or settings.session_sweep_interval_seconds
    logger.info(f"Session sweeper started (every {interval}s)")
    while True:
        await asyncio.sleep(interval)
        await sweep_idle_sessions(store, idle_timeout_seconds)
