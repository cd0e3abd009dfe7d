"""
Configuration module for the Printago API Wrapper.

This module uses Pydantic Settings to load and validate environment variables
for the vendor API credentials, the wrapper's own Basic auth credentials,
the endpoint allow-list and server settings.

Environment variables are loaded from .env file or system environment.

Required secrets are declared optional here on purpose: a missing value must
not crash settings construction, because the wrapper reports missing
variables either at startup (fail fast) or on every /v1/* request.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ALLOWED_ENDPOINTS = (
    "POST /v1/storage/signed-upload-urls,POST /v1/parts,POST /v1/builds"
)

# Order matters: missing variables are reported in this order.
REQUIRED_VARIABLES = ("PRINTAGO_API_KEY", "STORE_ID", "WRAPPER_PASSWORD")


def parse_allowed_endpoints(raw: Optional[str]) -> List[str]:
    """
    Split a comma-separated allow-list into trimmed, non-empty entries.

    Example:
        >>> parse_allowed_endpoints("POST /v1/parts, /v1/builds ,")
        ['POST /v1/parts', '/v1/builds']
    """
    if not raw:
        return []
    return [entry.strip() for entry in raw.split(",") if entry.strip()]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Vendor credentials, wrapper credentials and the allow-list are defined
    here. Instances are treated as immutable once loaded.
    """

    # =========================================================================
    # Vendor API (Printago)
    # =========================================================================

    PRINTAGO_API_KEY: Optional[str] = Field(
        None,
        description="Printago API key injected into every proxied /v1/* request",
    )

    STORE_ID: Optional[str] = Field(
        None,
        description="Printago store identifier sent as x-printago-storeid",
    )

    PRINTAGO_BASE_URL: str = Field(
        default="https://api.printago.io",
        description="Vendor API origin (no trailing slash)",
        min_length=1,
    )

    # =========================================================================
    # Wrapper Basic Auth
    # =========================================================================

    WRAPPER_USERNAME: str = Field(
        default="client",
        description="Username callers must present via HTTP Basic auth",
    )

    WRAPPER_PASSWORD: Optional[str] = Field(
        None,
        description="Password callers must present via HTTP Basic auth",
    )

    # =========================================================================
    # Endpoint Allow-list
    # =========================================================================

    ALLOWED_ENDPOINTS: str = Field(
        default=DEFAULT_ALLOWED_ENDPOINTS,
        description=(
            "Comma-separated list of 'METHOD /path' pairs or bare paths "
            "(e.g. 'POST /v1/parts,/v1/builds')"
        ),
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================

    HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the wrapper server",
    )

    PORT: int = Field(
        default=3000,
        description="Port to bind the wrapper server",
        ge=1,
        le=65535,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    REQUIRE_CONFIG_AT_STARTUP: bool = Field(
        default=True,
        description=(
            "Abort startup when required variables are missing. Disable for "
            "hosts without a startup phase; requests then fail with 500."
        ),
    )

    UPSTREAM_TIMEOUT_SECONDS: Optional[float] = Field(
        None,
        description="Timeout for outbound calls in seconds (unset = no timeout)",
    )

    MAX_BODY_BYTES: int = Field(
        default=50 * 1024 * 1024,
        description="Largest request body accepted on any proxied route (bytes)",
        ge=1,
    )

    # =========================================================================
    # Pydantic Settings Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def allowed_endpoints_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ENDPOINTS as a clean list.

        Returns:
            List of allow-list entries without surrounding whitespace.
        """
        return parse_allowed_endpoints(self.ALLOWED_ENDPOINTS)

    def missing_required(self) -> List[str]:
        """
        Return the names of required variables that are unset or empty.

        Safe to call any number of times; the result only depends on the
        loaded values.
        """
        return [name for name in REQUIRED_VARIABLES if not getattr(self, name)]

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("PRINTAGO_BASE_URL")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """
        Validate the vendor base URL and strip trailing slashes.

        Raises:
            ValueError: If the URL is not http(s)
        """
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"PRINTAGO_BASE_URL must start with http:// or https://, got: {v}"
            )
        return v.rstrip("/")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}, got: {v}")
        return v

    @field_validator("UPSTREAM_TIMEOUT_SECONDS")
    @classmethod
    def validate_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("UPSTREAM_TIMEOUT_SECONDS must be greater than zero")
        return v


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    This function is cached so that the settings are loaded only once
    during the application lifecycle.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If a variable is present but malformed.
    """
    return Settings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(settings: Settings) -> dict:
    """
    Validate critical configuration settings and return a status report.

    Called during application startup and by ``python -m api_wrapper.app.config``.

    Returns:
        Dictionary with validation status, errors and warnings.

    Example:
        >>> status = validate_configuration(get_settings())
        >>> if not status["valid"]:
        ...     print(status["errors"])
    """
    errors = []
    warnings = []

    missing = settings.missing_required()
    for name in missing:
        errors.append(f"{name} is not set")

    if not settings.allowed_endpoints_list:
        warnings.append("ALLOWED_ENDPOINTS is empty; every /v1/* request will be rejected")

    if not settings.PRINTAGO_BASE_URL.startswith("https://"):
        warnings.append("PRINTAGO_BASE_URL is not HTTPS; the API key will travel in clear text")

    if settings.WRAPPER_USERNAME == "client":
        warnings.append("WRAPPER_USERNAME is the default 'client'")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "missing": missing,
        "allowed_endpoints": settings.allowed_endpoints_list,
    }


# =============================================================================
# Example Usage & Documentation
# =============================================================================

if __name__ == "__main__":
    """
    Validate your .env configuration:
        python -m api_wrapper.app.config
    """
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    log = logging.getLogger("api_wrapper.config")

    config = get_settings()
    status = validate_configuration(config)

    log.info("Vendor base URL:   %s", config.PRINTAGO_BASE_URL)
    log.info("Store ID:          %s", config.STORE_ID or "<unset>")
    log.info("API key:           %s", "<set>" if config.PRINTAGO_API_KEY else "<unset>")
    log.info("Wrapper username:  %s", config.WRAPPER_USERNAME)
    log.info("Wrapper password:  %s", "<set>" if config.WRAPPER_PASSWORD else "<unset>")
    log.info("Allowed endpoints: %s", ", ".join(config.allowed_endpoints_list))
    log.info("Listen:            %s:%s", config.HOST, config.PORT)
    log.info("Max body bytes:    %s", config.MAX_BODY_BYTES)

    for error in status["errors"]:
        log.error("ERROR: %s", error)
    for warning in status["warnings"]:
        log.warning("WARNING: %s", warning)

    raise SystemExit(0 if status["valid"] else 1)
