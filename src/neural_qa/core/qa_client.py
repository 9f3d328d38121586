"""
Resilient client for the neural-qa answering service.
Why: callers always get an answer object; outages, rate limits and bad
payloads degrade to a fixed local answer instead of raising.

Flow: build payload -> POST through run_with_retry -> parse -> classify.
Anything that goes wrong on the way is converted by `ask_question` into
`fallback_response()` and the message is kept in `error`.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Union

import httpx
from pydantic import ValidationError

from neural_qa.config.settings import QASettings, get_settings

from .circuit_breaker import CircuitBreaker
from .exceptions import (
    CircuitOpenError,
    InvalidQueryError,
    MalformedResponseError,
    UpstreamStatusError,
)
from .logging import get_logger
from .metrics import QAMetrics
from .retry import RetryAttempt, get_resilience_message, run_with_retry
from .schemas import (
    CircuitContext,
    ClientState,
    MutationType,
    QAQuery,
    QAResponse,
    QueryContext,
    QueryOutcome,
    ValidationResult,
)

_LOG = get_logger(__name__)

FALLBACK_ANSWER = (
    "I'm having trouble connecting to the knowledge base. The C. elegans nervous "
    "system has 302 neurons with ~7,000 synaptic connections. Please try again "
    "for detailed analysis."
)
FALLBACK_CONFIDENCE = 0.9
FALLBACK_SOURCES = ("local-cache",)

HALLUCINATION_WARNING = "Response may contain unverified claims - flagged for review"

Notifier = Callable[[str], None]
ContextLike = Union[QueryContext, Dict[str, Any], None]


def build_request_payload(question: str, context: ContextLike = None) -> Dict[str, Any]:
    """JSON body for the service: {"question": ..., "context": {...}} in wire casing."""
    try:
        query = QAQuery(question=question, context=context)
    except ValidationError as exc:
        raise InvalidQueryError(f"invalid query: {exc.error_count()} validation error(s)") from exc
    return query.model_dump(mode="json", by_alias=True, exclude_none=True)


def parse_response(body: Any) -> QAResponse:
    if not isinstance(body, dict):
        raise MalformedResponseError(
            f"expected a JSON object, got {type(body).__name__}"
        )
    # `degraded` is ours to set, never the remote's
    fields = {k: v for k, v in body.items() if k not in ("degraded", "error")}
    try:
        return QAResponse.model_validate(fields)
    except ValidationError as exc:
        raise MalformedResponseError(
            f"response does not match the expected shape: {exc.error_count()} error(s)"
        ) from exc


def classify_outcome(response: QAResponse) -> QueryOutcome:
    if response.degraded:
        return QueryOutcome.FALLBACK
    if response.hallucination_flag:
        return QueryOutcome.FLAGGED
    if response.validation.is_valid:
        return QueryOutcome.VALIDATED
    return QueryOutcome.ANSWERED


def fallback_response() -> QAResponse:
    return QAResponse(
        answer=FALLBACK_ANSWER,
        validation=ValidationResult(
            is_valid=True,
            confidence=FALLBACK_CONFIDENCE,
            sources=list(FALLBACK_SOURCES),
        ),
        hallucination_flag=False,
        degraded=True,
    )


def describe_error(exc: Optional[BaseException]) -> str:
    if exc is None:
        return "Unknown error"
    return str(exc) or type(exc).__name__


def _decode(http_response: httpx.Response) -> Tuple[Dict[str, Any], QAResponse]:
    try:
        body = http_response.json()
    except ValueError as exc:
        raise MalformedResponseError("response body is not valid JSON") from exc
    return body, parse_response(body)


def _log_notification(message: str) -> None:
    _LOG.info(message, extra={"event": "notify"})


class NeuralQAClient:
    """Question-answering client that never raises from `ask_question`.

    `is_loading`, `last_response` and `error` are display state shared by all
    calls on this instance; with overlapping calls the last one to finish wins.
    """

    def __init__(
        self,
        settings: Optional[QASettings] = None,
        *,
        notifier: Optional[Notifier] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        breaker: Optional[CircuitBreaker] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self._notifier = notifier or _log_notification
        self._http_client = http_client
        if breaker is None and self.settings.breaker_threshold > 0:
            breaker = CircuitBreaker(
                failure_threshold=self.settings.breaker_threshold,
                recovery_timeout=self.settings.breaker_recovery,
            )
        self.breaker = breaker
        self._sleep = sleep
        self.metrics = QAMetrics()

        self.is_loading = False
        self.last_response: Optional[QAResponse] = None
        self.error: Optional[str] = None

    @property
    def state(self) -> ClientState:
        return ClientState(
            is_loading=self.is_loading,
            error=self.error,
            last_response=self.last_response,
        )

    async def ask_question(self, question: str, context: ContextLike = None) -> QAResponse:
        self.is_loading = True
        self.error = None
        self.metrics.increment_queries()
        start = time.perf_counter()
        try:
            response = await self._answer(question, context)
        except Exception as exc:
            response = self._degrade(exc)
        finally:
            self.is_loading = False
            self.metrics.record_latency(int((time.perf_counter() - start) * 1000))
        self.last_response = response
        return response

    async def query_mutation(
        self,
        target: str,
        mutation_type: Union[MutationType, str],
        context: Union[CircuitContext, Dict[str, Any], None] = None,
    ) -> QAResponse:
        kind = MutationType(mutation_type)
        question = (
            f"Mutate {target} synapse ({kind.value}) - "
            "predict stochastic delta and behavioral outcome?"
        )
        return await self.ask_question(
            question, {"current_circuit": context, "user_level": "high"}
        )

    async def validate_claim(self, claim: str) -> ValidationResult:
        response = await self.ask_question(
            f'Validate this claim against owmeta data: "{claim}"'
        )
        return response.validation

    async def _answer(self, question: str, context: ContextLike) -> QAResponse:
        payload = build_request_payload(question, context)

        if self.breaker is not None and not self.breaker.allow():
            raise CircuitOpenError()

        try:
            http_response = await run_with_retry(
                lambda: self._post(payload),
                self.settings.max_attempts,
                self._on_retry,
                base_delay=self.settings.base_delay,
                max_delay=self.settings.max_delay,
                sleep=self._sleep,
            )
            body, response = _decode(http_response)
        except Exception:
            # malformed 2xx answers count against the breaker too
            if self.breaker is not None:
                self.breaker.record_failure()
            raise
        if self.breaker is not None:
            self.breaker.record_success()

        remote_error = body.get("error")
        if isinstance(remote_error, str) and remote_error:
            self.error = remote_error

        outcome = classify_outcome(response)
        if outcome is QueryOutcome.FLAGGED:
            self.metrics.increment_flagged()
            _LOG.warning(
                "answer flagged as possible hallucination",
                extra={"event": "hallucination_flagged", "outcome": outcome.value},
            )
            self._notify(HALLUCINATION_WARNING)
        else:
            _LOG.info("answer received", extra={"event": "answered", "outcome": outcome.value})
        return response

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.settings.api_key}",
        }
        if self._http_client is not None:
            res = await self._http_client.post(
                self.settings.endpoint, json=payload, headers=headers
            )
        else:
            async with httpx.AsyncClient(timeout=self.settings.timeout) as client:
                res = await client.post(self.settings.endpoint, json=payload, headers=headers)
        if not res.is_success:
            raise UpstreamStatusError(res.status_code, res.text[:200])
        return res

    def _on_retry(self, attempt: RetryAttempt) -> None:
        self.metrics.increment_retries()
        _LOG.info(
            f"neural-qa attempt {attempt.attempt} failed ({describe_error(attempt.error)}), "
            f"retrying in {attempt.delay:.1f}s",
            extra={
                "event": "retry",
                "attempt": attempt.attempt,
                "delay_s": attempt.delay,
                "status_code": getattr(attempt.error, "status_code", None),
            },
        )
        self._notify(get_resilience_message())

    def _notify(self, message: str) -> None:
        try:
            self._notifier(message)
        except Exception:
            _LOG.warning("notifier raised; ignoring", exc_info=True)

    def _degrade(self, exc: Exception) -> QAResponse:
        self.error = describe_error(exc)
        self.metrics.increment_fallbacks()
        _LOG.warning(
            f"neural-qa unavailable, answering from fallback: {self.error}",
            extra={
                "event": "fallback",
                "outcome": QueryOutcome.FALLBACK.value,
                "status_code": getattr(exc, "status_code", None),
            },
        )
        return fallback_response()
