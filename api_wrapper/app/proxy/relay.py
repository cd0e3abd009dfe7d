"""
Response relay from upstream to caller.

Status codes are preserved. JSON bodies (sniffed from content-type) are
parsed and re-serialized compactly; anything else, including JSON that fails
to parse, is passed through byte-for-byte. Only a small set of safe upstream
headers is copied, so hop-by-hop and length/encoding headers computed by
httpx never leak into the caller's response.
"""

import json
import logging
from typing import Dict, Mapping, Optional

import httpx
from fastapi import Response

logger = logging.getLogger(__name__)


SAFE_UPSTREAM_HEADERS = (
    "content-type",
    "cache-control",
    "content-disposition",
    "etag",
    "last-modified",
    "expires",
)


def is_json_content_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and "application/json" in content_type.lower()


def select_safe_headers(upstream_headers: Mapping[str, str]) -> Dict[str, str]:
    return {
        name: upstream_headers[name]
        for name in SAFE_UPSTREAM_HEADERS
        if name in upstream_headers
    }


def reserialize_json(body: bytes) -> Optional[bytes]:
    """Round-trip a JSON body through its parsed form; None if it does not parse."""
    if not body:
        return None
    try:
        parsed = json.loads(body)
    except ValueError:
        return None
    return json.dumps(parsed, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def relay_response(
    upstream: httpx.Response,
    extra_headers: Optional[Mapping[str, str]] = None,
) -> Response:
    """
    Build the caller-facing response for an upstream response.

    Args:
        upstream: Fully-read upstream response
        extra_headers: Headers merged on top of the copied upstream headers

    Returns:
        Response with the upstream status code
    """
    headers = select_safe_headers(upstream.headers)
    if extra_headers:
        headers.update(extra_headers)

    body = upstream.content
    if is_json_content_type(upstream.headers.get("content-type")):
        reserialized = reserialize_json(body)
        if reserialized is not None:
            body = reserialized
        elif body:
            logger.warning(
                "Upstream declared JSON but body did not parse; passing through raw",
                extra={"status_code": upstream.status_code},
            )

    return Response(content=body, status_code=upstream.status_code, headers=headers)
