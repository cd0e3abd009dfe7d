"""
Authentication Package

Admission checks for /v1/* requests.

Modules:
- basic: HTTP Basic credential decoding and constant-time verification
- allowlist: ``METHOD path`` / bare-path allow-list matching

The admission flow:
1. Required configuration present (see ``dependencies.ensure_configured``)
2. Caller presents valid Basic credentials
3. ``METHOD path`` is in the allow-list
"""

from .allowlist import format_endpoint, is_endpoint_allowed
from .basic import BasicCredentials, authenticate_basic, decode_basic_credentials

__all__ = [
    "BasicCredentials",
    "authenticate_basic",
    "decode_basic_credentials",
    "format_endpoint",
    "is_endpoint_allowed",
]
