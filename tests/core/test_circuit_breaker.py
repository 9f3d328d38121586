"""Tests for circuit breaker."""

import pytest

from neural_qa.core.circuit_breaker import CircuitBreaker, CircuitState


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def test_breaker_starts_closed(clock):
    """Test that breaker starts in closed state."""
    breaker = CircuitBreaker(failure_threshold=3, recovery_timeout=1, clock=clock)
    assert breaker.state == CircuitState.CLOSED
    assert breaker.allow() is True


def test_breaker_opens_after_threshold(clock):
    """Test that breaker opens after failure threshold."""
    breaker = CircuitBreaker(failure_threshold=3, recovery_timeout=1, clock=clock)

    for _ in range(3):
        breaker.record_failure()

    assert breaker.state == CircuitState.OPEN
    assert breaker.allow() is False


def test_breaker_half_open_after_timeout(clock):
    """Test that breaker enters half-open after recovery timeout."""
    breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=1, clock=clock)

    breaker.record_failure()
    breaker.record_failure()
    assert breaker.state == CircuitState.OPEN

    clock.now += 1.1
    assert breaker.allow() is True
    assert breaker.state == CircuitState.HALF_OPEN


def test_breaker_closes_on_success(clock):
    """Test that breaker closes on successful call."""
    breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=1, clock=clock)

    breaker.record_failure()
    breaker.record_failure()
    clock.now += 1.1
    breaker.allow()
    breaker.record_success()

    assert breaker.state == CircuitState.CLOSED
    assert breaker.failure_count == 0


def test_failed_trial_call_reopens(clock):
    """A failure while half-open reopens and restarts the cooldown."""
    breaker = CircuitBreaker(failure_threshold=5, recovery_timeout=10, clock=clock)
    for _ in range(5):
        breaker.record_failure()
    clock.now += 10
    assert breaker.allow() is True

    breaker.record_failure()
    assert breaker.state == CircuitState.OPEN
    clock.now += 5
    assert breaker.allow() is False


def test_breaker_resets_on_success(clock):
    """Test that breaker resets failure count on success."""
    breaker = CircuitBreaker(failure_threshold=3, recovery_timeout=1, clock=clock)

    breaker.record_failure()
    assert breaker.failure_count == 1

    breaker.record_success()
    assert breaker.failure_count == 0
    assert breaker.state == CircuitState.CLOSED


def test_breaker_rejects_zero_threshold():
    with pytest.raises(ValueError):
        CircuitBreaker(failure_threshold=0)


def test_half_open_lets_one_caller_through(clock):
    """Only the first caller after the cooldown reaches the service."""
    breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=10, clock=clock)
    breaker.record_failure()
    clock.now += 10

    assert breaker.allow() is True
    assert breaker.state == CircuitState.HALF_OPEN
    assert breaker.allow() is False
    assert breaker.allow() is False

    breaker.record_success()
    assert breaker.allow() is True
