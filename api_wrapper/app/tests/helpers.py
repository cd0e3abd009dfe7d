"""
Test helpers: settings factory, Basic auth header builder and an upstream
recorder for ``httpx.MockTransport``.
"""

import base64
from typing import Callable, List

import httpx

from api_wrapper.app.config import Settings


TEST_USERNAME = "client"
TEST_PASSWORD = "wrapper-password"
TEST_API_KEY = "vendor-api-key"
TEST_STORE_ID = "store-123"
TEST_BASE_URL = "https://vendor.test"


class RecordingUpstream:
    """Records outbound requests and answers them with ``handler``."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"ok": True}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "no outbound request was sent"
        return self.requests[-1]


def make_settings(**overrides) -> Settings:
    values = dict(
        PRINTAGO_API_KEY=TEST_API_KEY,
        STORE_ID=TEST_STORE_ID,
        PRINTAGO_BASE_URL=TEST_BASE_URL,
        WRAPPER_USERNAME=TEST_USERNAME,
        WRAPPER_PASSWORD=TEST_PASSWORD,
        REQUIRE_CONFIG_AT_STARTUP=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def basic_auth_header(username: str = TEST_USERNAME, password: str = TEST_PASSWORD) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"
