"""
Integration Layer Test Fixtures
Shared fixtures for all test modules.
"""

import json
from collections.abc import Callable

import httpx
import pytest

from integrations.config import ServiceEndpointConfig

BASE_URL = "http://upstream.test"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def json_bodies(self, path: str) -> list[dict]:
        return [json.loads(r.content) for r in self.calls_to(path)]


# ============================================================
# Fixtures
# ============================================================


@pytest.fixture
def endpoint_config() -> ServiceEndpointConfig:
    """Fast endpoint config: two retries, no delay."""
    return ServiceEndpointConfig(base_url=BASE_URL, timeout=5.0, max_retries=2, retry_delay=0.0)


@pytest.fixture
def make_transport() -> Callable[[Callable[[httpx.Request], httpx.Response]], RecordingTransport]:
    """Factory for recording transports around a request handler."""
    return RecordingTransport


@pytest.fixture
def route_transport() -> Callable[[dict[str, Callable[[httpx.Request], httpx.Response]]], RecordingTransport]:
    """Factory for a recording transport that dispatches on request path.

    Paths without a handler answer 404.
    """

    def _create(routes: dict[str, Callable[[httpx.Request], httpx.Response]]) -> RecordingTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            route = routes.get(request.url.path)
            if route is None:
                return httpx.Response(404, json={"success": False, "error": "not found"})
            return route(request)

        return RecordingTransport(handler)

    return _create
