"""Shared fixtures: settings, a recording sleep and a scripted upstream."""

import asyncio
from contextlib import AsyncExitStack
from typing import Any, List, Optional

import httpx
import pytest
import pytest_asyncio

from neural_qa.config.settings import QASettings
from neural_qa.core.qa_client import NeuralQAClient

ENDPOINT = "https://qa.test/functions/v1/neural-qa"

GOOD_PAYLOAD = {
    "answer": "X",
    "validation": {"isValid": True, "confidence": 0.95, "sources": ["owmeta"]},
    "hallucination": False,
}


class SleepRecorder:
    """Stands in for asyncio.sleep; remembers the delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ScriptedUpstream:
    """MockTransport handler replaying queued replies; the last reply repeats.

    A reply is an exception to raise, or a (status, body) pair where body is
    JSON-encoded when it is a dict/list and sent as raw text otherwise.
    """

    def __init__(self, *replies: Any) -> None:
        self.replies = list(replies)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        status, body = reply
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)


class Notifications:
    def __init__(self) -> None:
        self.messages: List[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture
def settings() -> QASettings:
    return QASettings(endpoint=ENDPOINT, api_key="test-key", max_attempts=3)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def notifications() -> Notifications:
    return Notifications()


@pytest_asyncio.fixture
async def make_client(settings, sleeper, notifications):
    """Build NeuralQAClients wired to a ScriptedUpstream; transports close at teardown."""
    async with AsyncExitStack() as stack:

        def _make(upstream: ScriptedUpstream, notifier: Optional[Any] = None, **kwargs) -> NeuralQAClient:
            http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
            stack.push_async_callback(http_client.aclose)
            return NeuralQAClient(
                kwargs.pop("settings", settings),
                notifier=notifier or notifications,
                http_client=http_client,
                sleep=sleeper,
                **kwargs,
            )

        yield _make


@pytest.fixture
def mock_http():
    """AsyncClient factory for sync tests (TestClient, CLI); closed at teardown."""
    opened: List[httpx.AsyncClient] = []

    def _open(upstream: ScriptedUpstream) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
        opened.append(client)
        return client

    yield _open
    for client in opened:
        asyncio.run(client.aclose())
