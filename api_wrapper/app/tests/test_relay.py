"""
Unit Tests for the Response Relay

Tests for api_wrapper/app/proxy/relay.py
"""

import httpx
import pytest

from api_wrapper.app.proxy.relay import (
    is_json_content_type,
    relay_response,
    reserialize_json,
    select_safe_headers,
)


@pytest.mark.parametrize(
    "content_type,expected",
    [
        ("application/json", True),
        ("application/json; charset=utf-8", True),
        ("Application/JSON", True),
        ("application/problem+json", False),
        ("text/plain", False),
        (None, False),
        ("", False),
    ],
)
def test_is_json_content_type(content_type, expected):
    assert is_json_content_type(content_type) is expected


def test_reserialize_json_compacts_formatting():
    assert reserialize_json(b'{\n  "b": [1, 2],\n  "a": "\xc3\xa9"\n}') == '{"b":[1,2],"a":"é"}'.encode("utf-8")


@pytest.mark.parametrize("body", [b"", b"not json", b"{"])
def test_reserialize_json_returns_none_when_unparseable(body):
    assert reserialize_json(body) is None


def test_select_safe_headers_drops_hop_by_hop_and_length():
    headers = httpx.Headers(
        {
            "content-type": "application/json",
            "cache-control": "no-store",
            "etag": '"abc"',
            "content-length": "10",
            "content-encoding": "gzip",
            "connection": "keep-alive",
            "set-cookie": "a=b",
        }
    )

    assert select_safe_headers(headers) == {
        "content-type": "application/json",
        "cache-control": "no-store",
        "etag": '"abc"',
    }


def test_relay_preserves_status_and_reserializes_json():
    upstream = httpx.Response(
        404,
        headers={"content-type": "application/json"},
        content=b'{ "message" : "Part not found" }',
    )

    response = relay_response(upstream)

    assert response.status_code == 404
    assert response.body == b'{"message":"Part not found"}'
    assert response.headers["content-type"] == "application/json"


def test_relay_passes_binary_through_untouched():
    blob = bytes(range(256))
    upstream = httpx.Response(200, headers={"content-type": "application/octet-stream"}, content=blob)

    response = relay_response(upstream)

    assert response.body == blob


def test_relay_passes_invalid_json_through():
    upstream = httpx.Response(502, headers={"content-type": "application/json"}, content=b"<html>Bad Gateway</html>")

    response = relay_response(upstream)

    assert response.status_code == 502
    assert response.body == b"<html>Bad Gateway</html>"


def test_relay_merges_extra_headers():
    upstream = httpx.Response(200, headers={"content-type": "text/plain"}, content=b"ok")

    response = relay_response(upstream, {"Access-Control-Allow-Origin": "*"})

    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["content-type"] == "text/plain"
