"""
Data Models Module

Pydantic models for the wrapper's own responses. Proxied vendor and storage
responses are opaque and never modeled here.
"""

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ============================================================================
# Health Check Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(default="healthy", description="Service health status")
    allowedEndpoints: List[str] = Field(..., description="Configured endpoint allow-list")
    timestamp: str = Field(default_factory=utc_timestamp, description="Check timestamp")
