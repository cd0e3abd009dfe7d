"""
Shared fixtures for wrapper tests.

Outbound traffic is captured with ``httpx.MockTransport``: every request the
wrapper sends is recorded on ``upstream.requests`` and answered by
``upstream.handler`` (a 200 JSON response unless a test swaps it).
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from api_wrapper.app.config import Settings
from api_wrapper.app.main import create_app

from .helpers import RecordingUpstream, basic_auth_header, make_settings


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def upstream():
    return RecordingUpstream()


@pytest.fixture
def make_client(upstream):
    """Build a TestClient for an app using the given settings."""
    def _make(settings: Settings) -> TestClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
        return TestClient(create_app(settings=settings, http_client=http_client))
    return _make


@pytest.fixture
def client(make_client, settings):
    return make_client(settings)


@pytest.fixture
def auth_headers():
    """Standard authorization headers for authenticated requests"""
    return {
        "Authorization": basic_auth_header(),
        "Content-Type": "application/json",
    }
