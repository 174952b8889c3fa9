"""
Shared pytest fixtures for Rossby-Vis tests.

The backend is never a real server: every gateway under test gets an
``httpx.MockTransport`` whose handler plays the Rossby data server.
"""

import json
import os
from typing import Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

# ---------------------------------------------------------------------------
# Section 1: Environment setup (before ANY api.* imports)
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("STATIC_DIR", "")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("ENABLE_METRICS", "false")

from api.config import Settings  # noqa: E402
from api.main import create_app  # noqa: E402

BACKEND_URL = "http://rossby.test"


# ---------------------------------------------------------------------------
# Section 2: Backend payloads
# ---------------------------------------------------------------------------


def _variable(long_name: str, units: str) -> Dict:
    return {
        "attributes": {"long_name": long_name, "units": units},
        "dimensions": ["time", "latitude", "longitude"],
    }


@pytest.fixture
def sample_metadata() -> Dict:
    """ERA5-like metadata: 3x3 grid at 0.25 deg, two time steps."""
    return {
        "coordinates": {
            "latitude": [90.0, 89.75, 89.5],
            "longitude": [0.0, 0.25, 0.5],
            "time": [700464.0, 700465.0],
        },
        "dimensions": {
            "latitude": {"size": 3},
            "longitude": {"size": 3},
            "time": {"size": 2},
        },
        "variables": {
            "latitude": {"attributes": {"units": "degrees_north"}, "dimensions": ["latitude"]},
            "longitude": {"attributes": {"units": "degrees_east"}, "dimensions": ["longitude"]},
            "time": {"attributes": {"units": "hours since 1900-01-01"}, "dimensions": ["time"]},
            "u10": _variable("10 metre U wind component", "m s**-1"),
            "v10": _variable("10 metre V wind component", "m s**-1"),
            "t2m": _variable("2 metre temperature", "K"),
            "sp": _variable("Surface pressure", "Pa"),
            "d2m": _variable("2 metre dewpoint temperature", "K"),
        },
    }


def _samples(base: float) -> List[float]:
    return [base + i for i in range(9)]


@pytest.fixture
def sample_data() -> Dict:
    """Backend /data payload covering every variable in sample_metadata."""
    return {
        "metadata": {"time": 700464.0},
        "data": {
            "u10": _samples(1.0),
            "v10": _samples(-4.0),
            "t2m": _samples(270.0),
            "sp": _samples(101000.0),
            "d2m": _samples(260.0),
        },
    }


class FakeBackend:
    """
    MockTransport handler recording every request it receives.

    ``responses`` maps a path to ``(status, body)``; bodies that are not
    bytes are JSON-encoded. Unknown paths answer 404.
    """

    def __init__(self, responses: Dict[str, tuple]):
        self.responses = dict(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.responses.get(request.url.path, (404, {"error": "not found"}))
        if isinstance(body, Exception):
            raise body
        content = body if isinstance(body, bytes) else json.dumps(body).encode()
        return httpx.Response(status, content=content, headers={"content-type": "application/json"})

    def requests_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


@pytest.fixture
def fake_backend():
    """The FakeBackend class, for tests that script their own responses."""
    return FakeBackend


@pytest.fixture
def backend(sample_metadata, sample_data) -> FakeBackend:
    return FakeBackend({
        "/metadata": (200, sample_metadata),
        "/data": (200, sample_data),
    })


# ---------------------------------------------------------------------------
# Section 3: Gateway fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    return Settings(api_url=BACKEND_URL, static_dir=None, environment="testing", enable_metrics=False)


@pytest.fixture
def make_client(test_settings) -> Callable[..., TestClient]:
    """Factory for TestClients bound to a given backend handler."""
    clients: List[TestClient] = []

    def _make(handler: Callable, settings: Optional[Settings] = None) -> TestClient:
        app = create_app(settings or test_settings, transport=httpx.MockTransport(handler))
        test_client = TestClient(app)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make

    for test_client in clients:
        test_client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, backend) -> TestClient:
    """Gateway in front of the default FakeBackend."""
    return make_client(backend)
