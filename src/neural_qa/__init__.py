"""Resilient client for the neural-qa question-answering service."""

from neural_qa.core.qa_client import NeuralQAClient
from neural_qa.core.retry import RetryAttempt, compute_backoff_delay, run_with_retry
from neural_qa.core.schemas import (
    CircuitContext,
    MutationType,
    QAResponse,
    QueryContext,
    QueryOutcome,
    ValidationResult,
)

__all__ = [
    "NeuralQAClient",
    "RetryAttempt",
    "compute_backoff_delay",
    "run_with_retry",
    "CircuitContext",
    "MutationType",
    "QAResponse",
    "QueryContext",
    "QueryOutcome",
    "ValidationResult",
]
