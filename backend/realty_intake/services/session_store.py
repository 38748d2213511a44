# /realty_intake/services/session_store.py

import abc
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator, Dict, Optional

from realty_intake.models.conversation import Session
from realty_intake.utils.metrics import active_sessions_gauge

# This service keeps the per-actor conversation state. The engine only talks
# to the SessionStore interface, so a durable backend can replace the
# in-memory one without touching flow logic.

logger = logging.getLogger(__name__)


class SessionStore(abc.ABC):
    @abc.abstractmethod
    def get(self, actor_id: str) -> Optional[Session]:
        ...

    @abc.abstractmethod
    def get_or_create(self, actor_id: str) -> Session:
        ...

    @abc.abstractmethod
    def remove(self, actor_id: str) -> bool:
        ...

    @abc.abstractmethod
    def lock(self, actor_id: str):
        """Async context manager serializing work for one actor."""

    @abc.abstractmethod
    def sweep_expired(self, max_idle: timedelta, now: Optional[datetime] = None) -> int:
        ...

    @abc.abstractmethod
    def __len__(self) -> int:
        ...


class InMemorySessionStore(SessionStore):
    """Process-lifetime store. A restart drops every in-flight conversation."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    def get(self, actor_id: str) -> Optional[Session]:
        return self._sessions.get(actor_id)

    def get_or_create(self, actor_id: str) -> Session:
        session = self._sessions.get(actor_id)
        if session is None:
            session = Session(actor_id=actor_id)
            self._sessions[actor_id] = session
            active_sessions_gauge.set(len(self._sessions))
            logger.info(f"Session created for {actor_id}")
        return session

    def remove(self, actor_id: str) -> bool:
        removed = self._sessions.pop(actor_id, None) is not None
        if removed:
            active_sessions_gauge.set(len(self._sessions))
            logger.info(f"Session removed for {actor_id}")
        return removed

    @asynccontextmanager
    async def lock(self, actor_id: str) -> AsyncIterator[None]:
        # Holders and waiters are counted so the entry lives exactly as long
        # as someone uses it; a woken waiter still counts before it resumes.
        actor_lock = self._locks.get(actor_id)
        if actor_lock is None:
            actor_lock = self._locks[actor_id] = asyncio.Lock()
        self._lock_users[actor_id] = self._lock_users.get(actor_id, 0) + 1
        try:
            async with actor_lock:
                yield
        finally:
            self._lock_users[actor_id] -= 1
            if self._lock_users[actor_id] == 0:
                del self._lock_users[actor_id]
                del self._locks[actor_id]

    def sweep_expired(self, max_idle: timedelta, now: Optional[datetime] = None) -> int:
        """Removes sessions idle for longer than `max_idle`. Returns how many were removed."""
        now = now or datetime.utcnow()
        expired = [
            actor_id for actor_id, session in self._sessions.items()
            if session.idle_for(now) > max_idle and not self.is_busy(actor_id)
        ]
        for actor_id in expired:
            self._sessions.pop(actor_id, None)

        if expired:
            active_sessions_gauge.set(len(self._sessions))
            logger.info(f"Session sweep removed {len(expired)} idle session(s)")
        return len(expired)

    def is_busy(self, actor_id: str) -> bool:
        """True while a delivery for the actor holds or waits for its lock."""
        return actor_id in self._lock_users

    @property
    def lock_count(self) -> int:
        return len(self._locks)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, actor_id: str) -> bool:
        return actor_id in self._sessions


# Globally accessible instance
session_store = InMemorySessionStore()
