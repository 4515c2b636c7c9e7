"""Helpers for building Graph query strings."""

from urllib.parse import quote


def encode_query_parameter(value: str) -> str:
    """Escape a value for use inside a single-quoted OData literal in a URL.

    Single quotes are doubled (the OData escape), then the result is
    percent-encoded with the same reserved set as JavaScript's
    ``encodeURIComponent``.
    """
    return quote(value.replace("'", "''"), safe="!*'()")


def odata_eq(field: str, value: str) -> str:
    """Return an ``<field> eq '<value>'`` filter expression with *value* escaped."""
    return f"{field} eq '{encode_query_parameter(value)}'"
