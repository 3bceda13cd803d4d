import pytest
from pydantic import ValidationError

from weathercache.core.config import (
    AppConfig,
    CacheBackendType,
    ConfigError,
    load_app_config,
    write_default_config,
)
from weathercache.core.config.loader import BASE_URL_ENV


@pytest.fixture(autouse=True)
def _clear_base_url(monkeypatch):
    monkeypatch.delenv(BASE_URL_ENV, raising=False)


def test_defaults_match_documented_behaviour():
    config = AppConfig()

    assert config.cache.ttl_seconds == 300
    assert config.cache.backend == CacheBackendType.MEMORY
    assert config.retry.max_retries == 2
    assert config.retry.max_attempts == 3
    assert config.retry.base_delay_ms == 1000
    assert config.retry.multiplier == 2.0
    assert config.retry.jitter is True
    assert config.retry.throttle_status == 429


def test_config_is_immutable():
    config = AppConfig()

    with pytest.raises(ValidationError):
        config.cache.ttl_seconds = 10


def test_missing_file_yields_defaults(tmp_path):
    assert load_app_config(tmp_path / "nope.yaml") == AppConfig()


def test_yaml_values_and_env_expansion(tmp_path, monkeypatch):
    monkeypatch.setenv("FORECAST_HOST", "https://forecast.internal")
    path = tmp_path / "app.yaml"
    path.write_text(
        "upstream:\n"
        "  base_url: ${FORECAST_HOST}/v1\n"
        "cache:\n"
        "  backend: sql\n"
        "  ttl_seconds: ${CACHE_TTL:-120}\n",
        encoding="utf-8",
    )

    config = load_app_config(path)

    assert config.upstream.base_url == "https://forecast.internal/v1"
    assert config.cache.backend == CacheBackendType.SQL
    assert config.cache.ttl_seconds == 120


def test_base_url_environment_override(tmp_path, monkeypatch):
    monkeypatch.setenv(BASE_URL_ENV, "http://localhost:8080")

    config = load_app_config(tmp_path / "missing.yaml")

    assert config.upstream.base_url == "http://localhost:8080"


def test_invalid_values_raise_config_error(tmp_path):
    path = tmp_path / "app.yaml"
    path.write_text("retry:\n  max_retries: -1\n", encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_app_config(path)

    assert excinfo.value.path == path
    assert "max_retries" in excinfo.value.details


def test_invalid_yaml_raises_config_error(tmp_path):
    path = tmp_path / "app.yaml"
    path.write_text("cache: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_app_config(path)


def test_default_config_file_loads(tmp_path):
    path = tmp_path / "configs" / "app.yaml"

    assert write_default_config(path) is True
    assert write_default_config(path) is False

    config = load_app_config(path)
    assert config.upstream.base_url == "https://api.open-meteo.com/v1"
    assert config.cache.ttl_seconds == 300
