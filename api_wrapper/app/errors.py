"""
Wrapper Exceptions
==================

Every rejection the wrapper produces is raised as a ``WrapperError`` subclass
at the point where the problem is detected, and converted into a JSON
response by the exception handler registered in ``main.create_app``.

    ConfigurationMissing  -> 500
    AuthenticationFailed  -> 401 (+ WWW-Authenticate challenge)
    EndpointNotAllowed    -> 403 (discloses the allow-list)
    TargetUrlMissing      -> 400
    DownstreamFailure     -> 500 (wraps the transport error text)
    RouteNotFound         -> 404
    PayloadTooLarge       -> 413
"""

from typing import Any, Dict, List, Optional

from fastapi import status


BASIC_AUTH_REALM = "Printago API Wrapper"


class WrapperError(Exception):
    """Base exception for all request rejections"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, body: Dict[str, Any], headers: Optional[Dict[str, str]] = None):
        super().__init__(body.get("error", "error"))
        self.body = body
        self.headers = headers or {}


class ConfigurationMissing(WrapperError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(
            {"error": "Missing required environment variables", "missing": self.missing}
        )


class AuthenticationFailed(WrapperError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            {"error": reason},
            headers={"WWW-Authenticate": f'Basic realm="{BASIC_AUTH_REALM}"'},
        )


class EndpointNotAllowed(WrapperError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, endpoint: str, allowed_endpoints: List[str]):
        self.endpoint = endpoint
        super().__init__(
            {
                "error": "Endpoint not allowed",
                "endpoint": endpoint,
                "allowedEndpoints": list(allowed_endpoints),
            }
        )


class TargetUrlMissing(WrapperError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self):
        super().__init__({"error": "No target URL provided for file upload"})


class DownstreamFailure(WrapperError):
    """The outbound call failed before any upstream response was received."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, label: str, message: str):
        self.label = label
        super().__init__({"error": label, "message": message})


class RouteNotFound(WrapperError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, path: str):
        super().__init__({"error": "Not found", "path": path})


class PayloadTooLarge(WrapperError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__({"error": "Request body too large", "limit": limit})
