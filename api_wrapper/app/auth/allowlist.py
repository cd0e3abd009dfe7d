"""
Endpoint allow-list matching.

An entry is either an exact ``"METHOD /path"`` pair or a bare ``/path`` that
matches any method. Matching is verbatim: case-sensitive paths, no trailing
slash or percent-decoding normalization, no wildcards. Query strings never
take part in matching.
"""

from typing import Iterable


def format_endpoint(method: str, path: str) -> str:
    """Canonical ``"METHOD path"`` string used for matching and error bodies."""
    return f"{method.upper()} {path}"


def is_endpoint_allowed(method: str, path: str, allowed: Iterable[str]) -> bool:
    endpoint = format_endpoint(method, path)
    return any(entry == endpoint or entry == path for entry in allowed)
