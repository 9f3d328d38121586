"""Configuration settings for the query client."""
import os
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

from neural_qa.core.exceptions import ConfigError

load_dotenv()

T = TypeVar("T")

FUNCTION_PATH = "/functions/v1/neural-qa"
DEFAULT_BACKEND_URL = "http://localhost:54321"

# Hard bounds; retries must never become unbounded through configuration.
MAX_ATTEMPTS_LIMIT = 10
MAX_DELAY_LIMIT = 60.0


def _env(name: str, cast: Callable[[str], T], default: T) -> T:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name}={raw!r} is not a valid {cast.__name__}") from exc


@dataclass(frozen=True)
class QASettings:
    endpoint: str = DEFAULT_BACKEND_URL + FUNCTION_PATH
    api_key: str = ""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 5.0
    timeout: float = 30.0
    # 0 disables the circuit breaker
    breaker_threshold: int = 0
    breaker_recovery: float = 60.0

    def __post_init__(self) -> None:
        if not 1 <= self.max_attempts <= MAX_ATTEMPTS_LIMIT:
            raise ConfigError(
                f"max_attempts must be between 1 and {MAX_ATTEMPTS_LIMIT}, got {self.max_attempts}"
            )
        if not 0 <= self.base_delay <= self.max_delay <= MAX_DELAY_LIMIT:
            raise ConfigError(
                f"retry delays must satisfy 0 <= base ({self.base_delay}) "
                f"<= max ({self.max_delay}) <= {MAX_DELAY_LIMIT}"
            )
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")
        if self.breaker_threshold < 0 or self.breaker_recovery < 0:
            raise ConfigError("breaker settings must be non-negative")
        if not self.endpoint.startswith(("http://", "https://")):
            raise ConfigError(f"endpoint must be an http(s) URL, got {self.endpoint!r}")

    @classmethod
    def from_env(cls) -> "QASettings":
        endpoint = os.getenv("NEURAL_QA_ENDPOINT", "").strip()
        if not endpoint:
            base_url = os.getenv("SUPABASE_URL", "").strip() or DEFAULT_BACKEND_URL
            endpoint = base_url.rstrip("/") + FUNCTION_PATH
        api_key = (
            os.getenv("NEURAL_QA_API_KEY", "").strip()
            or os.getenv("SUPABASE_PUBLISHABLE_KEY", "").strip()
        )
        return cls(
            endpoint=endpoint,
            api_key=api_key,
            max_attempts=_env("NEURAL_QA_MAX_ATTEMPTS", int, cls.max_attempts),
            base_delay=_env("NEURAL_QA_RETRY_BASE_DELAY", float, cls.base_delay),
            max_delay=_env("NEURAL_QA_RETRY_MAX_DELAY", float, cls.max_delay),
            timeout=_env("NEURAL_QA_TIMEOUT", float, cls.timeout),
            breaker_threshold=_env("NEURAL_QA_BREAKER_THRESHOLD", int, cls.breaker_threshold),
            breaker_recovery=_env("NEURAL_QA_BREAKER_RECOVERY", float, cls.breaker_recovery),
        )


@lru_cache(maxsize=1)
def get_settings() -> QASettings:
    return QASettings.from_env()


def with_overrides(base: Optional[QASettings] = None, **changes) -> QASettings:
    """Copy of `base` (or the env settings) with some fields replaced."""
    return replace(base or get_settings(), **changes)
