"""Shared pytest configuration and fixtures."""

import inspect
from typing import Callable, List, Optional

import httpx
import pytest

from metrics_poller.accumulator import MemoryAccumulator
from metrics_poller.config.models import GraylogConfig, HTTPOptions
from metrics_poller.services.http_client import HTTPClient, RealHTTPClient
from metrics_poller.utils.logger import setup_logger


ICECAST_STATUS = """
<?xml version="1.0" encoding="UTF-8"?>
<icestats><source mount="/mount.aac"><fallback/><listeners>420</listeners><Connected>806794</Connected><content-type>audio/aacp</content-type></source></icestats>
"""


class RecordingHTTPClient(HTTPClient):
    """Fake HTTP client that records requests and answers through a callable."""

    def __init__(self, responder: Callable):
        self.responder = responder
        self.requests: List[httpx.Request] = []
        self.prepare_calls = 0
        self._client: Optional[httpx.AsyncClient] = None

    async def execute(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responder(request)
        if inspect.isawaitable(response):
            response = await response
        return response

    def get_http_client(self) -> Optional[httpx.AsyncClient]:
        return self._client

    def set_http_client(self, client: Optional[httpx.AsyncClient]) -> None:
        self._client = client

    def prepare(self) -> None:
        self.prepare_calls += 1


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test")


@pytest.fixture
def acc():
    """In-memory accumulator."""
    return MemoryAccumulator()


@pytest.fixture
def recording_client():
    """Factory for RecordingHTTPClient instances."""
    return RecordingHTTPClient


@pytest.fixture
def mock_transport_client():
    """Factory for a RealHTTPClient whose transport is an httpx.MockTransport."""
    def factory(handler: Callable, timeout_s: float = 4.0) -> RealHTTPClient:
        client = RealHTTPClient(http_options=HTTPOptions(timeout_s=timeout_s))
        client.set_http_client(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        return client
    return factory


@pytest.fixture
def graylog_config():
    """Graylog configuration with one multiple and one namespace endpoint."""
    return GraylogConfig(
        servers=[
            "http://localhost:12900/system/metrics/multiple",
            "http://localhost:12900/system/metrics/namespace/jvm",
        ],
        metrics=["a.b", "c.d"],
        username="admin",
        password="secret",
    )


@pytest.fixture
def graylog_payload():
    """A typical Graylog metrics response body."""
    return {
        "total": 2,
        "metrics": [
            {
                "full_name": "jvm.cl.loaded",
                "name": "loaded",
                "type": "gauge",
                "metric": {"value": 1234},
            },
            {
                "full_name": "org.graylog2.throughput",
                "name": "throughput",
                "type": "timer",
                "metric": {
                    "rate": {"mean": 2.5, "one_minute": 1, "unit": "events/second"},
                    "count": 10,
                    "duration_unit": "microseconds",
                },
            },
        ],
    }


@pytest.fixture
def icecast_status():
    """Icecast stats XML with one mount."""
    return ICECAST_STATUS
