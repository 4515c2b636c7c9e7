"""CLI command modules."""

from . import approleassignment

__all__ = [
    "approleassignment",
]
