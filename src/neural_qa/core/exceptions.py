"""
Exception types for the query pipeline.
Why: the client absorbs these at its boundary; typed errors keep the
diagnostic message and status code for the `error` field.
"""

from typing import Optional


class QAError(Exception):
    """Base class for query pipeline failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UpstreamStatusError(QAError):
    """Raised when the answering service replies with a non-2xx status."""

    def __init__(self, status_code: int, detail: Optional[str] = None) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"API error: {status_code}")


class MalformedResponseError(QAError):
    """Raised when a 2xx body is not JSON or does not match the response shape."""


class CircuitOpenError(QAError):
    """Raised when the breaker refuses a call."""

    def __init__(self) -> None:
        super().__init__("Circuit open: answering service marked unavailable")


class ConfigError(QAError):
    """Raised when settings are missing or out of bounds."""


class InvalidQueryError(QAError):
    """Raised when a question or its context cannot be turned into a request."""
