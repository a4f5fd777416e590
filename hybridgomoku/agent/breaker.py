"""Failure circuit breaker with success hysteresis."""

from __future__ import annotations

import enum
import logging
from typing import NamedTuple

logger = logging.getLogger(__name__)

FAILURE_THRESHOLD = 3
RECOVERY_THRESHOLD = 5


class DegradationLevel(str, enum.Enum):
    REMOTE = "remote"
    REMOTE_PREFERRED = "remote-preferred-local-fallback"
    LOCAL_ONLY = "local-only"


class BreakerState(NamedTuple):
    failures: int
    successes: int


class CircuitBreaker:
    """Counts remote failures; sustained success is needed to fully recover.

    A success decrements the failure count and, after RECOVERY_THRESHOLD
    successes in a row, clears it. A failure increments it and breaks the
    success streak.
    """

    def __init__(
        self,
        failure_threshold: int = FAILURE_THRESHOLD,
        recovery_threshold: int = RECOVERY_THRESHOLD,
    ) -> None:
        self.failure_threshold = failure_threshold
        self.recovery_threshold = recovery_threshold
        self._failures = 0
        self._successes = 0

    def record(self, success: bool) -> None:
        if success:
            self._successes += 1
            self._failures = max(0, self._failures - 1)
            if self._successes >= self.recovery_threshold and self._failures:
                logger.info("Remote advice recovered after %d successes", self._successes)
                self._failures = 0
        else:
            self._failures += 1
            self._successes = 0
            logger.warning("Remote failure count: %d", self._failures)

    def should_fallback(self) -> bool:
        return self._failures >= self.failure_threshold

    @property
    def level(self) -> DegradationLevel:
        if self._failures == 0:
            return DegradationLevel.REMOTE
        if self._failures < self.failure_threshold:
            return DegradationLevel.REMOTE_PREFERRED
        return DegradationLevel.LOCAL_ONLY

    @property
    def state(self) -> BreakerState:
        return BreakerState(self._failures, self._successes)

    def reset(self) -> None:
        self._failures = 0
        self._successes = 0

    def stats(self) -> dict:
        return {
            "failures": self._failures,
            "successes": self._successes,
            "level": self.level.value,
            "should_fallback": self.should_fallback(),
        }
