"""
FastAPI middleware for basic observability (request_id + latency).
Why: minimal tracing without extra deps; feeds the /metrics endpoint.
"""

import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from .logging import get_logger
from .metrics import RequestMetrics

_LOG = get_logger(__name__)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, metrics: RequestMetrics) -> None:
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            self.metrics.increment_requests()
            self.metrics.record_latency(duration_ms)
            status = response.status_code if response is not None else 500
            if status >= 500:
                self.metrics.increment_errors()
            _LOG.info(
                f"path={request.url.path} method={request.method} status={status}",
                extra={"duration_ms": duration_ms, "request_id": request_id},
            )
