"""CLI command modules."""

from . import cache, forecast

__all__ = [
    "cache",
    "forecast",
]
