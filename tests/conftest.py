"""
Shared pytest fixtures and configuration.

conftest.py is auto-loaded by pytest; fixtures defined here are available
to all test files without explicit imports.
"""

import os
import sys
from typing import Dict, List, Optional, Tuple

import httpx
import pytest

# Add the service and mock server directories to the path so tests can import them
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "service"))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "mock_management_api"))

from models import EndpointConfig  # noqa: E402

BASE_URL = "http://management.test/management"


class FakeClock:
    """Manually advanced replacement for time.monotonic."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeManagementApi:
    """
    In-process stand-in for the management API, served through httpx.MockTransport.

    Unstubbed paths answer 404. A stub may be an exception instance, which is
    raised instead of answering (connection refused, timeout...).
    """

    def __init__(self):
        self.stubs: Dict[str, List[Tuple[int, Optional[object], Optional[str]]]] = {}
        self.errors: Dict[str, Exception] = {}
        self.requests: List[httpx.Request] = []

    def stub(self, path: str, status: int = 200, json_body=None, text: Optional[str] = None):
        """Queue a response for path. The last queued response repeats forever."""
        self.stubs.setdefault(path, []).append((status, json_body, text))

    def fail(self, path: str, error: Exception):
        self.errors[path] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.errors:
            raise self.errors[path]
        queued = self.stubs.get(path)
        if not queued:
            return httpx.Response(404, text="Not found")
        status, json_body, text = queued.pop(0) if len(queued) > 1 else queued[0]
        if json_body is not None:
            return httpx.Response(status, json=json_body)
        return httpx.Response(status, text=text or "")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def count(self, path: str) -> int:
        return sum(1 for request in self.requests if request.url.path == path)


@pytest.fixture
def fake_api() -> FakeManagementApi:
    return FakeManagementApi()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def endpoint_config() -> EndpointConfig:
    return EndpointConfig(endpoint=BASE_URL, lookup_max_attempts=1)
