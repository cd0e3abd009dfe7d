"""
Proxy Package
=============

This package forwards admitted requests from browser clients to the vendor
API, and relays file uploads to pre-signed storage URLs.

Main Components:
----------------
- routes.py: FastAPI router with the /v1/* proxy and the PUT upload relay
- forwarder.py: Outbound request builders and the httpx-backed Forwarder
- relay.py: Upstream response relay (status, safe headers, JSON re-framing)

Security Features:
------------------
- Caller Authorization header never forwarded
- Vendor API key and store id injected server-side
- Only content-type survives from inbound headers

Usage:
------
    from api_wrapper.app.proxy import proxy_router
    app.include_router(proxy_router)
"""

from .routes import proxy_router

__all__ = ["proxy_router"]
