"""
Circuit breaker around the answering service.
Why: during an outage, stop paying a full retry sequence per question;
answer from the fallback until the cooldown elapses.

One failure is recorded per exhausted retry sequence or malformed answer,
not per attempt. While half-open only the first caller is let through.
"""

import time
from enum import Enum
from typing import Callable


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self._opened_at: float = 0.0

    def allow(self) -> bool:
        if self.state is CircuitState.CLOSED:
            return True
        if (
            self.state is CircuitState.OPEN
            and self._clock() - self._opened_at >= self.recovery_timeout
        ):
            # exactly one caller gets through as the trial call
            self.state = CircuitState.HALF_OPEN
            return True
        return False

    def record_success(self) -> None:
        self.state = CircuitState.CLOSED
        self.failure_count = 0

    def record_failure(self) -> None:
        self.failure_count += 1
        # a failed trial call reopens immediately
        if (
            self.state is CircuitState.HALF_OPEN
            or self.failure_count >= self.failure_threshold
        ):
            self.state = CircuitState.OPEN
            self._opened_at = self._clock()
