"""
Outbound Request Forwarding
===========================

Builds the outbound request for each proxy mode and sends it through a
``Forwarder``. The forwarder is the only place that talks to the network;
``HttpxForwarder`` implements it on top of an injected ``httpx.AsyncClient``
so any host (uvicorn, an edge runtime, tests with ``httpx.MockTransport``)
can supply its own transport.

Modes:
------
- Vendor API proxy: ``PRINTAGO_BASE_URL + path + query`` with the vendor
  ``ApiKey`` authorization and store header injected. Only ``content-type``
  survives from the inbound headers.
- Storage upload proxy: ``PUT`` of the raw body to a caller-supplied
  pre-signed URL. Only ``content-type`` is sent; never vendor credentials.
"""

import json
from typing import Any, Dict, Optional, Protocol

import httpx
from pydantic import BaseModel, Field

from ..config import Settings

VENDOR_AUTH_SCHEME = "ApiKey"
STORE_ID_HEADER = "x-printago-storeid"

DEFAULT_VENDOR_CONTENT_TYPE = "application/json"
DEFAULT_UPLOAD_CONTENT_TYPE = "application/octet-stream"

BODYLESS_METHODS = frozenset({"GET", "HEAD"})


# ============================================================================
# Models
# ============================================================================

class OutboundRequest(BaseModel):
    """
    Request sent to the vendor API or to a storage target.

    Attributes:
        method: HTTP method (uppercase)
        url: Fully-qualified target URL
        headers: Complete outbound header set (nothing else is added)
        content: Body bytes, or None for no body
    """

    method: str = Field(..., description="HTTP method")
    url: str = Field(..., description="Target URL")
    headers: Dict[str, str] = Field(default_factory=dict, description="Outbound headers")
    content: Optional[bytes] = Field(default=None, description="Body bytes")


class Forwarder(Protocol):
    """Capability to send one outbound request and return the upstream response."""

    async def forward(self, outbound: OutboundRequest) -> httpx.Response:
        ...

    async def aclose(self) -> None:
        ...


class HttpxForwarder:
    """
    ``Forwarder`` backed by an ``httpx.AsyncClient``.

    Transport failures propagate as ``httpx.HTTPError`` / ``httpx.InvalidURL``;
    the routes translate them into a 500 for the caller.
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def forward(self, outbound: OutboundRequest) -> httpx.Response:
        return await self.client.request(
            outbound.method,
            outbound.url,
            headers=outbound.headers,
            content=outbound.content,
        )

    async def aclose(self) -> None:
        await self.client.aclose()


# ============================================================================
# Body Encoding
# ============================================================================

def encode_outbound_body(body: Any) -> Optional[bytes]:
    """
    Turn an inbound body into the bytes sent upstream.

    Hosts that hand over raw bytes get them forwarded untouched. Hosts that
    eagerly parse JSON hand over text or structured objects; text is UTF-8
    encoded and anything else is serialized back to compact JSON.

    Args:
        body: Raw bytes, text, a parsed JSON value, or None

    Returns:
        Bytes to send, or None for no body
    """
    if body is None:
        return None

    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)

    if isinstance(body, str):
        return body.encode("utf-8")

    return json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


# ============================================================================
# Request Builders
# ============================================================================

def build_vendor_url(base_url: str, path: str, query: Optional[str]) -> str:
    """
    Example:
        >>> build_vendor_url("https://api.printago.io", "/v1/parts", "limit=5")
        'https://api.printago.io/v1/parts?limit=5'
    """
    url = f"{base_url}{path}"
    if query:
        url = f"{url}?{query}"
    return url


def build_vendor_request(
    settings: Settings,
    method: str,
    path: str,
    query: Optional[str],
    content_type: Optional[str],
    body: Any,
) -> OutboundRequest:
    """
    Build the vendor API request for an admitted /v1/* call.

    The inbound Authorization header is replaced by the vendor API key, the
    store header is injected, and every other inbound header is dropped.
    GET and HEAD never carry a body.
    """
    method = method.upper()

    headers = {
        "content-type": content_type or DEFAULT_VENDOR_CONTENT_TYPE,
        "authorization": f"{VENDOR_AUTH_SCHEME} {settings.PRINTAGO_API_KEY}",
        STORE_ID_HEADER: settings.STORE_ID or "",
    }

    content = None
    if method not in BODYLESS_METHODS:
        content = encode_outbound_body(body)

    return OutboundRequest(
        method=method,
        url=build_vendor_url(settings.PRINTAGO_BASE_URL, path, query),
        headers=headers,
        content=content,
    )


def build_storage_upload_request(
    target_url: str,
    content_type: Optional[str],
    body: bytes,
) -> OutboundRequest:
    """Build the ``PUT`` that relays a file upload to a pre-signed storage URL."""
    return OutboundRequest(
        method="PUT",
        url=target_url,
        headers={"content-type": content_type or DEFAULT_UPLOAD_CONTENT_TYPE},
        content=body,
    )
