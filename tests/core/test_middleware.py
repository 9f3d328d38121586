"""Tests for observability middleware."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from neural_qa.core.metrics import RequestMetrics
from neural_qa.core.middleware import ObservabilityMiddleware


@pytest.fixture
def metrics():
    return RequestMetrics()


@pytest.fixture
def client(metrics):
    """Create a test client around an app with the middleware."""
    test_app = FastAPI()
    test_app.add_middleware(ObservabilityMiddleware, metrics=metrics)

    @test_app.get("/test")
    async def test_endpoint():
        return {"message": "ok"}

    @test_app.get("/error")
    async def error_endpoint():
        raise ValueError("Test error")

    return TestClient(test_app, raise_server_exceptions=False)


def test_middleware_adds_request_id(client):
    """Test that middleware adds X-Request-ID to response."""
    response = client.get("/test")
    assert len(response.headers["x-request-id"]) > 0


def test_middleware_preserves_provided_request_id(client):
    """Test that middleware preserves X-Request-ID from request."""
    response = client.get("/test", headers={"X-Request-ID": "test-123-456"})
    assert response.headers["x-request-id"] == "test-123-456"


def test_middleware_records_request_and_latency(client, metrics):
    client.get("/test")
    assert metrics.total_requests == 1
    assert metrics.total_errors == 0
    assert len(metrics._latencies) == 1
    assert metrics._latencies[-1] >= 0


def test_middleware_counts_errors(client, metrics):
    """Test that middleware doesn't crash on errors."""
    response = client.get("/error")
    assert response.status_code == 500
    assert metrics.total_requests == 1
    assert metrics.total_errors == 1
