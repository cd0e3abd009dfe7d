"""
Fixed, permissive CORS policy.

Every response carries the same header set: the request origin is echoed
back (or ``*`` when absent). ``OPTIONS`` on any path is answered with 204
before routing, authentication or configuration checks run.
"""

from typing import Dict, Optional

from fastapi import Request, Response, status


ALLOW_METHODS = "GET,POST,PUT,PATCH,DELETE,OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization, X-Target-Url"
MAX_AGE_SECONDS = 86400


def build_cors_headers(origin: Optional[str]) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin or "*",
        "Vary": "Origin",
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Max-Age": str(MAX_AGE_SECONDS),
    }


def cors_headers_for(request: Request) -> Dict[str, str]:
    return build_cors_headers(request.headers.get("origin"))


async def cors_middleware(request: Request, call_next) -> Response:
    """
    HTTP middleware: short-circuit preflights, decorate everything else.

    Registered with ``app.middleware("http")`` in ``main.create_app``.
    """
    cors_headers = cors_headers_for(request)

    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=cors_headers)

    response = await call_next(request)
    for name, value in cors_headers.items():
        response.headers[name] = value
    return response
