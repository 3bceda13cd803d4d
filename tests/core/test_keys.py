from weathercache.core.cache.keys import CACHE_KEY_PREFIX, build_url, generate_cache_key

from tests.helpers import FORECAST_URL, PARAMS


def test_build_url_joins_with_single_slash():
    assert build_url("https://api.example.com/v1", "/forecast") == "https://api.example.com/v1/forecast"
    assert build_url("https://api.example.com/v1/", "forecast") == "https://api.example.com/v1/forecast"
    assert build_url("https://api.example.com/v1/", "//forecast") == "https://api.example.com/v1/forecast"


def test_build_url_keeps_absolute_endpoints():
    assert build_url("https://api.example.com", "http://other.test/x") == "http://other.test/x"
    assert build_url("https://api.example.com", "https://other.test/x") == "https://other.test/x"


def test_cache_key_is_deterministic_and_fixed_width():
    first = generate_cache_key(FORECAST_URL, PARAMS)
    second = generate_cache_key(FORECAST_URL, dict(PARAMS))

    assert first == second
    assert first.startswith(CACHE_KEY_PREFIX)
    assert len(first) == len(CACHE_KEY_PREFIX) + 32


def test_cache_key_ignores_parameter_order():
    assert generate_cache_key(FORECAST_URL, {"lat": 1, "lon": 2}) == generate_cache_key(
        FORECAST_URL, {"lon": 2, "lat": 1}
    )


def test_cache_key_distinguishes_params_and_urls():
    base = generate_cache_key(FORECAST_URL, PARAMS)

    assert generate_cache_key(FORECAST_URL, {**PARAMS, "latitude": 40.7129}) != base
    assert generate_cache_key(FORECAST_URL, {**PARAMS, "forecast_days": "1"}) != base
    assert generate_cache_key("https://api.example.com/v2/forecast", PARAMS) != base
