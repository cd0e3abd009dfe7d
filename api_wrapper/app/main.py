"""
FastAPI Application Factory
===========================

This is the main entry point for the Printago API wrapper, an authenticating
reverse proxy that lets browser clients call a restricted set of vendor API
endpoints without ever holding the vendor API key.

Architecture:
    Browser App → Wrapper (this service) → Printago API
    Browser App → Wrapper (this service) → Pre-signed storage URL (PUT uploads)

Routes:
    - OPTIONS *        : CORS preflight (204, handled by middleware)
    - GET|HEAD /health : Health check, echoes the allow-list (no auth)
    - /v1/*            : Proxied to the vendor API (Basic auth + allow-list)
    - PUT /*           : Upload relay to ?url= or X-Target-Url (no auth)
    - anything else    : 404

Environment Variables:
    - PRINTAGO_API_KEY: Vendor API key (required)
    - STORE_ID: Vendor store identifier (required)
    - WRAPPER_PASSWORD: Basic auth password callers must present (required)
    - WRAPPER_USERNAME: Basic auth username (default: client)
    - MAX_BODY_BYTES: Largest accepted request body (default: 50 MiB)
    - PRINTAGO_BASE_URL: Vendor origin (default: https://api.printago.io)
    - ALLOWED_ENDPOINTS: Comma-separated allow-list
    - PORT / HOST: Listen address (default: 0.0.0.0:3000)
    - LOG_LEVEL: Logging level (default: INFO)
    - REQUIRE_CONFIG_AT_STARTUP: Abort startup on missing config (default: true)
    - UPSTREAM_TIMEOUT_SECONDS: Outbound timeout (default: none)

Running the Service:
    Development:
        uvicorn api_wrapper.app.main:app --reload --port 3000

    Production:
        api-wrapper
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings, validate_configuration
from .cors import cors_headers_for, cors_middleware
from .errors import ConfigurationMissing, RouteNotFound, WrapperError
from .models import HealthResponse
from .proxy import proxy_router
from .proxy.forwarder import HttpxForwarder
from .proxy.routes import inbound_path

logger = logging.getLogger("api_wrapper.main")


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup tasks:
        - Validate configuration; abort when required variables are missing
          and REQUIRE_CONFIG_AT_STARTUP is set
        - Log service startup information (never secrets)

    Shutdown tasks:
        - Close the outbound HTTP client
    """
    settings: Settings = app.state.settings
    status = validate_configuration(settings)

    for warning in status["warnings"]:
        logger.warning(f"Configuration warning: {warning}")

    if status["missing"]:
        if settings.REQUIRE_CONFIG_AT_STARTUP:
            logger.error(
                f"Missing required environment variables: {', '.join(status['missing'])}"
            )
            raise ConfigurationMissing(status["missing"])
        logger.warning(
            f"Missing required environment variables: {', '.join(status['missing'])}; "
            "every /v1/* request will fail with 500"
        )

    logger.info(
        "Printago API wrapper started",
        extra={
            "base_url": settings.PRINTAGO_BASE_URL,
            "allowed_endpoints": settings.allowed_endpoints_list,
        }
    )
    logger.info(f"Allowed endpoints: {', '.join(settings.allowed_endpoints_list)}")

    yield

    logger.info("Shutting down Printago API wrapper")
    await app.state.forwarder.aclose()


# Create FastAPI application
def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Application factory function.

    Args:
        settings: Explicit settings (defaults to the cached environment settings)
        http_client: Outbound client; hosts and tests inject their own transport

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    if http_client is None:
        # timeout=None disables httpx's default 5s timeout
        http_client = httpx.AsyncClient(timeout=settings.UPSTREAM_TIMEOUT_SECONDS)

    app = FastAPI(
        title="Printago API Wrapper",
        description="Authenticating proxy exposing an allow-listed subset of the Printago API",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.settings = settings
    app.state.forwarder = HttpxForwarder(http_client)

    app.middleware("http")(cors_middleware)

    # Health check endpoint (registered before the proxy catch-all)
    @app.api_route("/health", methods=["GET", "HEAD"], tags=["System"])
    async def health_check() -> HealthResponse:
        """
        Health check endpoint.

        Returns service status and the configured allow-list.
        """
        return HealthResponse(allowedEndpoints=settings.allowed_endpoints_list)

    # Proxy router: vendor API under /v1/*, upload relay for PUT elsewhere
    app.include_router(proxy_router, tags=["Proxy"])

    @app.exception_handler(WrapperError)
    async def wrapper_error_handler(request: Request, exc: WrapperError) -> JSONResponse:
        """Render a request rejection as its JSON body."""
        logger.info(
            f"Rejected {request.method} {inbound_path(request)}: {exc.status_code}",
            extra={"error_type": type(exc).__name__, "status_code": exc.status_code},
        )
        return JSONResponse(status_code=exc.status_code, content=exc.body, headers=exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Unmatched routes and methods are reported as 404."""
        if exc.status_code in (404, 405):
            return await wrapper_error_handler(request, RouteNotFound(inbound_path(request)))
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Runs outside the CORS middleware, so CORS headers are added here.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": str(exc)},
            headers=cors_headers_for(request),
        )

    return app


# Create app instance for uvicorn
app = create_app()


def run() -> None:
    """
    Console entry point: fail fast on missing configuration, then serve.

    Exits with status 1 when required variables are missing and
    REQUIRE_CONFIG_AT_STARTUP is enabled.
    """
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    missing = settings.missing_required()
    if missing and settings.REQUIRE_CONFIG_AT_STARTUP:
        logger.error(f"Missing required environment variables: {', '.join(missing)}")
        sys.exit(1)

    logger.info(f"Printago API wrapper listening on {settings.HOST}:{settings.PORT}")
    logger.info(f"Health check: http://localhost:{settings.PORT}/health")

    uvicorn.run(
        "api_wrapper.app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
