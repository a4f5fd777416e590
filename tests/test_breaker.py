"""Tests for the failure circuit breaker."""

from hybridgomoku.agent.breaker import BreakerState, CircuitBreaker, DegradationLevel


class TestCircuitBreaker:
    def test_initial_level(self):
        cb = CircuitBreaker()
        assert cb.level is DegradationLevel.REMOTE
        assert not cb.should_fallback()

    def test_degrades_then_opens(self):
        cb = CircuitBreaker()
        cb.record(False)
        assert cb.level is DegradationLevel.REMOTE_PREFERRED
        cb.record(False)
        assert not cb.should_fallback()
        cb.record(False)
        assert cb.level is DegradationLevel.LOCAL_ONLY
        assert cb.should_fallback()

    def test_recovers_after_five_successes(self):
        cb = CircuitBreaker()
        for _ in range(3):
            cb.record(False)
        for _ in range(5):
            cb.record(True)
        assert cb.state == BreakerState(failures=0, successes=5)
        assert cb.level is DegradationLevel.REMOTE

    def test_success_decrements_failures(self):
        cb = CircuitBreaker()
        for _ in range(3):
            cb.record(False)
        cb.record(True)
        assert cb.state.failures == 2
        assert not cb.should_fallback()

    def test_failure_breaks_success_streak(self):
        cb = CircuitBreaker()
        for _ in range(4):
            cb.record(True)
        cb.record(False)
        assert cb.state == BreakerState(failures=1, successes=0)

    def test_reset(self):
        cb = CircuitBreaker()
        for _ in range(3):
            cb.record(False)
        cb.reset()
        assert cb.state == BreakerState(0, 0)
        assert cb.stats()["level"] == "remote"
