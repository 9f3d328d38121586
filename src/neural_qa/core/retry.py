"""
Bounded retry with exponential backoff for flaky async calls.
Why: recover from transient blips without hammering a degraded upstream.

The orchestrator knows nothing about questions or HTTP. It either returns the
operation's result or re-raises the last error once the attempt budget is
spent; `on_retry` is the only side effect it performs, and an observer that
raises is logged and ignored.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from .logging import get_logger

_LOG = get_logger(__name__)

T = TypeVar("T")

DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 5.0

RESILIENCE_MESSAGES = (
    "Rebooting worm resilience, stand by.",
    "Neural pathways rebuilding, stronger than before.",
    "C. elegans never gives up, and neither do we.",
    "Synaptic recovery in progress, stand by for science.",
    "302 neurons, infinite determination.",
)


def get_resilience_message() -> str:
    return random.choice(RESILIENCE_MESSAGES)


@dataclass(frozen=True)
class RetryAttempt:
    """One failed attempt: its 1-based index, the error and the wait before the next."""

    attempt: int
    error: Optional[BaseException]
    delay: float


def compute_backoff_delay(
    attempt: int,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
) -> float:
    """Seconds to wait after failed attempt `attempt` (1-based).

    base * 2^(attempt-1), capped at `max_delay`.
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    if base_delay < 0 or max_delay < 0:
        raise ValueError("delays must be non-negative")
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    on_retry: Optional[Callable[[RetryAttempt], None]] = None,
    *,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await `operation()` up to `max_attempts` times.

    Args:
        operation: zero-argument callable returning an awaitable
        max_attempts: hard cap on invocations (>= 1)
        on_retry: observer called before each backoff delay
        base_delay: first delay in seconds
        max_delay: delay ceiling in seconds
        sleep: delay coroutine, swappable in tests

    Returns:
        The first successful result.

    Raises:
        The last error raised by `operation`, unchanged.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= max_attempts:
                _LOG.debug(
                    f"attempt {attempt}/{max_attempts} failed, budget spent: {exc}",
                    extra={"event": "retry_exhausted", "attempt": attempt},
                )
                raise
            delay = compute_backoff_delay(attempt, base_delay, max_delay)
            _LOG.debug(
                f"attempt {attempt}/{max_attempts} failed: {exc}",
                extra={"event": "retry_scheduled", "attempt": attempt, "delay_s": delay},
            )
            if on_retry is not None:
                try:
                    on_retry(RetryAttempt(attempt=attempt, error=exc, delay=delay))
                except Exception:
                    _LOG.warning("on_retry observer raised; ignoring", exc_info=True)
            await sleep(delay)
            attempt += 1
