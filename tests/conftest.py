from __future__ import annotations

import pytest

from weathercache.core.config import RetryConfig, UpstreamConfig

from tests.helpers import BASE_URL, FakeClock, RecordingSleep


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def retry_config() -> RetryConfig:
    return RetryConfig(max_retries=2, base_delay_ms=1000, multiplier=2.0, jitter=False)


@pytest.fixture
def upstream_config() -> UpstreamConfig:
    return UpstreamConfig(base_url=BASE_URL, timeout_seconds=5.0)
