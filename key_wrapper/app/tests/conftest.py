"""
Shared fixtures for the key wrapper tests.

The upstream gateway is an ``httpx.MockTransport`` that records every request
it receives, so tests can assert exactly what was (or was not) forwarded.
"""

import json
from typing import Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from key_wrapper.app.config import Settings
from key_wrapper.app.main import create_app


GATEWAY_URL = "https://gateway.test/v1/account/gateway/openai"
DUMMY_KEY = "secretDummy"
REAL_KEY = "sk-real-0123456789"


def streamed_json(status_code: int, payload: dict, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
    """JSON reply delivered as a byte stream, like a real network response."""
    body = json.dumps(payload).encode("utf-8")

    async def chunks():
        yield body

    return httpx.Response(
        status_code,
        headers={
            "content-type": "application/json",
            "content-length": str(len(body)),
            **(headers or {}),
        },
        content=chunks(),
    )


class RecordingUpstream:
    """Mock AI gateway that records requests and returns a canned reply."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.responder: Optional[Callable[[httpx.Request], httpx.Response]] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responder is not None:
            return self.responder(request)
        return streamed_json(
            200,
            {"id": "chatcmpl-123", "object": "chat.completion"},
            headers={"x-upstream": "gateway"},
        )

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


def make_settings(**overrides) -> Settings:
    values = {
        "AI_GATEWAY_ENDPOINT_URL": GATEWAY_URL,
        "DUMMY_WRAPPER_KEY": DUMMY_KEY,
        "REAL_OPENAI_KEY": REAL_KEY,
        "LOG_LEVEL": "DEBUG",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def upstream():
    return RecordingUpstream()


@pytest.fixture
def upstream_client(upstream):
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def settings():
    """Fully valid configuration"""
    return make_settings()


@pytest.fixture
def app(settings, upstream_client):
    return create_app(settings=settings, http_client=upstream_client)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_client(upstream_client):
    """Build a test client for custom settings."""
    clients = []

    def _make(**overrides) -> TestClient:
        test_client = TestClient(
            create_app(settings=make_settings(**overrides), http_client=upstream_client)
        )
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make

    for test_client in clients:
        test_client.__exit__(None, None, None)


@pytest.fixture
def auth_headers():
    """Standard authorization headers carrying the dummy key"""
    return {
        "Authorization": f"Bearer {DUMMY_KEY}",
        "Content-Type": "application/json",
    }
