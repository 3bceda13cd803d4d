from types import SimpleNamespace

import pytest

from weathercache.core.config import RetryConfig
from weathercache.core.fetch.retries import wait_exponential_jittered, wait_strategy_for


def _state(attempt_number: int):
    return SimpleNamespace(attempt_number=attempt_number)


def test_backoff_grows_exponentially_without_jitter():
    wait = wait_strategy_for(RetryConfig(base_delay_ms=1000, multiplier=2.0, jitter=False))

    assert [wait(_state(n)) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]


@pytest.mark.parametrize("draw, expected", [(0.0, 0.9), (0.5, 1.0), (1.0, 1.1)])
def test_jitter_scales_delay_symmetrically(draw, expected):
    wait = wait_exponential_jittered(initial=1.0, multiplier=2.0, jitter=0.1, rng=lambda: draw)

    assert wait(_state(1)) == pytest.approx(expected)


def test_zero_base_delay_never_waits():
    wait = wait_strategy_for(RetryConfig(base_delay_ms=0))

    assert wait(_state(1)) == 0.0
    assert wait(_state(2)) == 0.0
