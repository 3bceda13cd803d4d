from datetime import datetime

import pytest

from weathercache.core.envelope import (
    CoordinateError,
    error_envelope,
    forecast_params,
    success_envelope,
    validate_coordinates,
)
from weathercache.core.service import FetchFailure, FetchResult


def test_defaults_to_berlin():
    assert validate_coordinates() == (52.52, 13.41)


def test_accepts_numeric_strings_and_bounds():
    assert validate_coordinates("-90", "180") == (-90.0, 180.0)
    assert validate_coordinates(40.7128, -74.006) == (40.7128, -74.006)


@pytest.mark.parametrize(
    "latitude, longitude, field",
    [
        ("91", "0", "latitude"),
        ("abc", "0", "latitude"),
        ("nan", "0", "latitude"),
        ("0", "-180.5", "longitude"),
        ("0", "", "longitude"),
    ],
)
def test_rejects_invalid_coordinates(latitude, longitude, field):
    with pytest.raises(CoordinateError, match=f"Invalid {field}"):
        validate_coordinates(latitude, longitude)


def test_forecast_params():
    assert forecast_params(1.5, 2.5) == {
        "latitude": 1.5,
        "longitude": 2.5,
        "hourly": "temperature_2m",
        "current": "temperature_2m",
        "forecast_days": 1,
    }


def test_success_envelope_from_cache():
    result = FetchResult(
        body={"temperature_2m": 22},
        source="cache",
        is_stale=False,
        cached_at=1_700_000_000,
        expires_in_seconds=200,
        timestamp=1_700_000_100,
    )

    envelope = success_envelope(result)

    assert envelope["success"] is True
    assert envelope["message"] == "Data retrieved from cache"
    assert envelope["cache_expires_in_seconds"] == 200
    assert envelope["cached_at"] == datetime.fromtimestamp(1_700_000_000).strftime("%Y-%m-%d %H:%M:%S")
    assert envelope["data"] == {"temperature_2m": 22}


def test_success_envelope_from_api_without_cached_at():
    result = FetchResult(body=[], source="api", is_stale=False, cached_at=None, expires_in_seconds=300, timestamp=0)

    envelope = success_envelope(result)

    assert envelope["message"] == "Data retrieved from API"
    assert envelope["cached_at"] is None


def test_error_envelope_statuses():
    body, status = error_envelope(CoordinateError("Invalid latitude. Must be between -90 and 90."))
    assert status == 400
    assert body == {"success": False, "error": "Invalid latitude. Must be between -90 and 90."}

    body, status = error_envelope(FetchFailure("Failed to fetch data: boom"))
    assert status == 500
    assert body["success"] is False
