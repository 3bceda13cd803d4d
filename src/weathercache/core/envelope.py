"""
Request validation and response envelopes for the forecast entry point.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from weathercache.core.fetch import WeatherCacheError

from .service import FetchResult

DEFAULT_LATITUDE = "52.52"
DEFAULT_LONGITUDE = "13.41"

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_INTERNAL_SERVER_ERROR = 500


class CoordinateError(WeatherCacheError, ValueError):
    """Latitude or longitude is not a number in range."""


def _coordinate(value: Any, name: str, limit: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = math.nan

    if math.isnan(number) or not -limit <= number <= limit:
        raise CoordinateError(
            f"Invalid {name}. Must be between -{limit:g} and {limit:g}."
        )
    return number


def validate_coordinates(
    latitude: Any = None,
    longitude: Any = None,
) -> tuple[float, float]:
    """Validate a coordinate pair, falling back to Berlin when omitted.

    Raises:
        CoordinateError: If either value is non-numeric or out of range
    """
    lat = _coordinate(DEFAULT_LATITUDE if latitude is None else latitude, "latitude", 90)
    lon = _coordinate(DEFAULT_LONGITUDE if longitude is None else longitude, "longitude", 180)
    return lat, lon


def forecast_params(latitude: float, longitude: float) -> dict[str, Any]:
    """Upstream query parameters for an hourly temperature forecast."""
    return {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": "temperature_2m",
        "current": "temperature_2m",
        "forecast_days": 1,
    }


def _format_timestamp(value: int | None) -> str | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value).strftime(DATETIME_FORMAT)


def success_envelope(result: FetchResult) -> dict[str, Any]:
    return {
        "success": True,
        "source": result.source,
        "cached_at": _format_timestamp(result.cached_at),
        "cache_expires_in_seconds": result.expires_in_seconds,
        "is_stale": result.is_stale,
        "timestamp": _format_timestamp(result.timestamp),
        "message": "Data retrieved from cache" if result.from_cache else "Data retrieved from API",
        "data": result.body,
    }


def error_envelope(error: Exception) -> tuple[dict[str, Any], int]:
    """Map an error to an envelope and the HTTP status it deserves.

    Coordinate errors are the caller's fault; anything else, including
    FetchFailure, is a server error.
    """
    status = HTTP_BAD_REQUEST if isinstance(error, CoordinateError) else HTTP_INTERNAL_SERVER_ERROR
    return {"success": False, "error": str(error)}, status
