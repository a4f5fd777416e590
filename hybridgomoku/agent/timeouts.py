"""Adaptive deadlines for remote calls."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections import deque
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 2.0  # seconds, used until a call has completed
MAX_TIMEOUT = 5.0
HISTORY_SIZE = 10
TIMEOUT_FACTOR = 1.5


class TimeoutController:
    """Races a remote call against a deadline learned from recent calls.

    The deadline is 1.5x the mean of the last 10 successful completion times,
    clamped to [DEFAULT_TIMEOUT, MAX_TIMEOUT]. A call that misses its deadline
    is cancelled and the caller's fallback is returned instead.
    """

    def __init__(
        self,
        default: float = DEFAULT_TIMEOUT,
        maximum: float = MAX_TIMEOUT,
        history: int = HISTORY_SIZE,
        factor: float = TIMEOUT_FACTOR,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default = default
        self.maximum = maximum
        self.factor = factor
        self._clock = clock
        self._times: deque[float] = deque(maxlen=history)
        self._timeouts = 0

    def adaptive_timeout(self) -> float:
        if not self._times:
            return self.default
        avg = sum(self._times) / len(self._times)
        # Whole milliseconds, rounded up
        adaptive = math.ceil(avg * self.factor * 1000) / 1000
        return min(max(adaptive, self.default), self.maximum)

    def record(self, elapsed: float) -> None:
        self._times.append(elapsed)

    async def run(
        self,
        awaitable: Awaitable[T],
        fallback: T,
        timeout: Optional[float] = None,
    ) -> T:
        """Await `awaitable` within the deadline, else cancel it and return `fallback`."""
        deadline = self.adaptive_timeout() if timeout is None else timeout
        start = self._clock()
        try:
            result = await asyncio.wait_for(awaitable, timeout=deadline)
        except asyncio.TimeoutError:
            self._timeouts += 1
            logger.warning("Remote call timed out after %.2fs, using fallback", deadline)
            return fallback
        elapsed = self._clock() - start
        self.record(elapsed)
        logger.debug("Remote call completed in %.3fs", elapsed)
        return result

    def reset(self) -> None:
        self._times.clear()
        self._timeouts = 0

    def stats(self) -> dict:
        avg = sum(self._times) / len(self._times) if self._times else 0.0
        return {
            "average_response_time": avg,
            "adaptive_timeout": self.adaptive_timeout(),
            "history_size": len(self._times),
            "timeouts": self._timeouts,
        }
