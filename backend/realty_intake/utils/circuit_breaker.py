# /realty_intake/utils/circuit_breaker.py

import asyncio
import time
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """Raised instead of calling a collaborator whose circuit is open."""

    def __init__(self, name: str):
        super().__init__(f"Circuit breaker is OPEN for {name}")
        self.name = name


class CircuitBreaker:
    """
    In-process breaker guarding one outbound collaborator (Graph API, Airtable).

    After `failure_threshold` consecutive failures calls are refused for
    `timeout` seconds. The first call after that is a probe; `success_threshold`
    successful probes close the circuit, a single failed one reopens it.
    """

    def __init__(self, name: str, failure_threshold: int = 5, timeout: int = 60, success_threshold: int = 2):
        self.name = name
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self.success_threshold = success_threshold
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time: float | None = None
        self.state = CircuitState.CLOSED
        self._lock = asyncio.Lock()

    async def call(self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        async with self._lock:
            self._admit()
        try:
            result = await func(*args, **kwargs)
        except Exception:
            async with self._lock:
                self._record_failure()
            raise
        async with self._lock:
            self._record_success()
        return result

    def snapshot(self) -> Dict[str, Any]:
        return {"state": self.state.value, "failures": self.failure_count}

    def _cooled_down(self) -> bool:
        return self.last_failure_time is not None and time.monotonic() - self.last_failure_time > self.timeout

    def _admit(self):
        if self.state != CircuitState.OPEN:
            return
        if not self._cooled_down():
            logger.warning(f"Circuit '{self.name}' is open, refusing call")
            raise CircuitOpenError(self.name)
        self.state = CircuitState.HALF_OPEN
        self.success_count = 0
        logger.info(f"Circuit '{self.name}' half-open, probing")

    def _record_success(self):
        if self.state != CircuitState.HALF_OPEN:
            self.failure_count = 0
            return
        self.success_count += 1
        if self.success_count >= self.success_threshold:
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            logger.info(f"Circuit '{self.name}' closed again")

    def _record_failure(self):
        self.failure_count += 1
        self.last_failure_time = time.monotonic()
        if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            self.state = CircuitState.OPEN
            logger.error(f"Circuit '{self.name}' opened after {self.failure_count} failure(s)")
