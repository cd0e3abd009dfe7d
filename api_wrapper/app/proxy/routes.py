"""
Proxy Routes - Vendor API and Storage Upload Forwarding
=======================================================

This module implements the two proxy modes of the wrapper.

Security Model:
---------------
1. /v1/* requests are checked for complete configuration, then Basic auth,
   then the endpoint allow-list, in that order
2. The caller's Authorization header is never forwarded; the vendor API key
   and store id are injected server-side
3. PUT on any other path relays the raw body to a pre-signed storage URL
   without authentication and without vendor credentials
4. Request bodies larger than ``MAX_BODY_BYTES`` are refused with 413

Endpoints:
----------
- {METHOD} /v1/*: Forward to the vendor API
- PUT /*:         Forward the body to ``?url=`` or ``X-Target-Url``
"""

import logging
from typing import Optional
from urllib.parse import urlsplit

import httpx
from fastapi import APIRouter, Depends, Request, Response

from ..auth.allowlist import format_endpoint, is_endpoint_allowed
from ..auth.basic import authenticate_basic
from ..config import Settings
from ..dependencies import ensure_configured, get_app_settings, get_forwarder
from ..errors import (
    DownstreamFailure,
    EndpointNotAllowed,
    PayloadTooLarge,
    RouteNotFound,
    TargetUrlMissing,
)
from .forwarder import (
    BODYLESS_METHODS,
    Forwarder,
    OutboundRequest,
    build_storage_upload_request,
    build_vendor_request,
)
from .relay import relay_response

logger = logging.getLogger(__name__)

# Create router
proxy_router = APIRouter()

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]

VENDOR_FAILURE_LABEL = "Internal server error"
UPLOAD_FAILURE_LABEL = "File upload failed"


# ============================================================================
# Helpers
# ============================================================================

def inbound_path(request: Request) -> str:
    """
    Path exactly as the client sent it (no percent-decoding, no query).

    Falls back to the decoded path when the server does not provide
    ``raw_path``.
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1")
    return request.url.path


def _target_host(url: str) -> str:
    # Pre-signed URLs carry credentials in the query; only log the host.
    try:
        return urlsplit(url).netloc
    except ValueError:
        return "<invalid>"


async def read_body_limited(request: Request, limit: int) -> bytes:
    """
    Read the request body, refusing anything larger than ``limit`` bytes.

    A declared ``content-length`` over the limit is rejected before any
    byte is read; chunked or under-declared bodies are cut off as soon as
    the running total passes the limit.

    Raises:
        PayloadTooLarge: If the body exceeds ``limit``
    """
    declared = request.headers.get("content-length")
    if declared is not None and declared.strip().isdigit() and int(declared) > limit:
        logger.warning(
            "Request body too large",
            extra={"content_length": int(declared), "limit": limit},
        )
        raise PayloadTooLarge(limit)

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            logger.warning(
                "Request body too large",
                extra={"received": received, "limit": limit},
            )
            raise PayloadTooLarge(limit)
        chunks.append(chunk)
    return b"".join(chunks)


async def send_outbound(forwarder: Forwarder, outbound: OutboundRequest, failure_label: str) -> httpx.Response:
    """
    Send one outbound request, translating transport failures.

    Raises:
        DownstreamFailure: If no upstream response could be obtained
    """
    try:
        return await forwarder.forward(outbound)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error(
            f"Outbound request failed: {type(e).__name__}",
            extra={"method": outbound.method, "target_host": _target_host(outbound.url)},
        )
        raise DownstreamFailure(failure_label, str(e) or type(e).__name__) from e


# ============================================================================
# Admission Gate
# ============================================================================

def admit_vendor_request(request: Request, settings: Settings) -> str:
    """
    Run the admission checks for a /v1/* request.

    Returns:
        The inbound path that was admitted

    Raises:
        ConfigurationMissing: Required variables are unset (checked first so
            no vendor call can happen with partial config)
        AuthenticationFailed: Basic auth is missing, malformed or wrong
        EndpointNotAllowed: ``METHOD path`` is not in the allow-list
    """
    ensure_configured(settings)
    authenticate_basic(request.headers.get("authorization"), settings)

    method = request.method.upper()
    path = inbound_path(request)
    allowed = settings.allowed_endpoints_list
    if not is_endpoint_allowed(method, path, allowed):
        logger.warning(
            "Endpoint not in allow-list",
            extra={"endpoint": format_endpoint(method, path)},
        )
        raise EndpointNotAllowed(format_endpoint(method, path), allowed)

    return path


# ============================================================================
# Proxy Endpoints
# ============================================================================

@proxy_router.api_route("/v1/{vendor_path:path}", methods=PROXY_METHODS)
async def proxy_vendor_api(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    forwarder: Forwarder = Depends(get_forwarder),
) -> Response:
    """
    Forward an admitted request to the vendor API.

    Flow:
    1. Admission gate (config, Basic auth, allow-list)
    2. Build the vendor request with injected credentials
    3. Send it and relay the upstream status and body
    """
    path = admit_vendor_request(request, settings)
    method = request.method.upper()

    body: Optional[bytes] = None
    if method not in BODYLESS_METHODS:
        body = await read_body_limited(request, settings.MAX_BODY_BYTES)

    outbound = build_vendor_request(
        settings,
        method=method,
        path=path,
        query=request.url.query,
        content_type=request.headers.get("content-type"),
        body=body,
    )

    logger.info(
        f"Proxying {method} {path} to vendor API",
        extra={"method": method, "path": path, "body_length": len(body or b"")},
    )

    upstream = await send_outbound(forwarder, outbound, VENDOR_FAILURE_LABEL)

    logger.info(
        f"Vendor API responded {upstream.status_code}",
        extra={"method": method, "path": path, "status_code": upstream.status_code},
    )
    return relay_response(upstream)


@proxy_router.api_route("/{target_path:path}", methods=PROXY_METHODS)
async def proxy_storage_upload(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    forwarder: Forwarder = Depends(get_forwarder),
) -> Response:
    """
    Relay a file upload to a pre-signed storage URL.

    Browsers cannot PUT to the storage provider directly because of its own
    cross-origin policy. Every non-PUT request that reaches this catch-all
    route is unmatched and answered with 404.
    """
    if request.method != "PUT":
        raise RouteNotFound(inbound_path(request))

    target_url = request.query_params.get("url") or request.headers.get("x-target-url")
    if not target_url:
        raise TargetUrlMissing()

    body = await read_body_limited(request, settings.MAX_BODY_BYTES)
    outbound = build_storage_upload_request(
        target_url,
        content_type=request.headers.get("content-type"),
        body=body,
    )

    logger.info(
        "Proxying file upload",
        extra={"target_host": _target_host(target_url), "body_length": len(body)},
    )

    upstream = await send_outbound(forwarder, outbound, UPLOAD_FAILURE_LABEL)
    return relay_response(upstream)
