"""Authenticating reverse proxy for an allow-listed subset of the Printago API."""

__version__ = "1.0.0"
