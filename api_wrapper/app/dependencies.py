"""
Shared FastAPI dependencies.

Settings and the outbound forwarder live on ``app.state`` (set by
``main.create_app``) so tests and alternative hosts can inject their own.
"""

from fastapi import Request

from .config import Settings, get_settings
from .errors import ConfigurationMissing


def get_app_settings(request: Request) -> Settings:
    """Settings attached to the running app, falling back to the environment."""
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        settings = get_settings()
    return settings


def get_forwarder(request: Request):
    """Outbound forwarder created by the application factory."""
    return request.app.state.forwarder


def ensure_configured(settings: Settings) -> None:
    """
    Raise when required configuration is missing.

    Used at startup (fail fast) and again on every /v1/* request, so a host
    without a startup phase never reaches the vendor with partial config.

    Raises:
        ConfigurationMissing: Listing every missing variable
    """
    missing = settings.missing_required()
    if missing:
        raise ConfigurationMissing(missing)
