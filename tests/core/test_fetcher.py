import asyncio

import httpx

from weathercache.core.fetch import (
    Failure,
    RetryingFetcher,
    Success,
    ThrottleError,
    Throttled,
    UpstreamError,
    looks_throttled,
)

from tests.helpers import FORECAST_URL, PARAMS, Upstream


def _call(upstream, retry_config, upstream_config, sleeper):
    fetcher = RetryingFetcher(upstream_config, retry_config, client=upstream.client(), sleep=sleeper)
    return asyncio.run(fetcher.call(FORECAST_URL, PARAMS))


def test_success_returns_parsed_body(retry_config, upstream_config, sleeper):
    upstream = Upstream((200, {"temperature_2m": 25}))

    outcome = _call(upstream, retry_config, upstream_config, sleeper)

    assert isinstance(outcome, Success)
    assert outcome.body == {"temperature_2m": 25}
    assert outcome.attempts == 1
    assert upstream.calls == 1
    assert sleeper.delays == []


def test_params_are_sent_as_query_string(retry_config, upstream_config, sleeper):
    upstream = Upstream(200)

    _call(upstream, retry_config, upstream_config, sleeper)

    query = upstream.requests[0].url.params
    assert upstream.requests[0].method == "GET"
    assert query["latitude"] == "40.7128"
    assert query["hourly"] == "temperature_2m"
    assert query["forecast_days"] == "1"


def test_throttle_then_success_within_retry_budget(retry_config, upstream_config, sleeper):
    upstream = Upstream(429, 429, 200)

    outcome = _call(upstream, retry_config, upstream_config, sleeper)

    assert isinstance(outcome, Success)
    assert outcome.attempts == 3
    assert upstream.calls == 3
    assert sleeper.delays == [1.0, 2.0]


def test_throttle_on_every_attempt_is_throttled(retry_config, upstream_config, sleeper):
    upstream = Upstream(429)

    outcome = _call(upstream, retry_config, upstream_config, sleeper)

    assert isinstance(outcome, Throttled)
    assert isinstance(outcome.error, ThrottleError)
    assert outcome.error.attempts == 3
    assert outcome.error.status_code == 429
    assert upstream.calls == 3


def test_retry_after_header_is_kept(retry_config, upstream_config, sleeper):
    async def handler(request):
        return httpx.Response(429, headers={"Retry-After": "7"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    fetcher = RetryingFetcher(upstream_config, retry_config, client=client, sleep=sleeper)

    outcome = asyncio.run(fetcher.call(FORECAST_URL, PARAMS))

    assert isinstance(outcome, Throttled)
    assert outcome.error.retry_after == 7.0


def test_server_error_is_failure_without_retry(retry_config, upstream_config, sleeper):
    upstream = Upstream(500)

    outcome = _call(upstream, retry_config, upstream_config, sleeper)

    assert isinstance(outcome, Failure)
    assert not isinstance(outcome.error, ThrottleError)
    assert outcome.error.status_code == 500
    assert upstream.calls == 1


def test_transport_error_is_failure(retry_config, upstream_config, sleeper):
    upstream = Upstream(httpx.ConnectError("connection refused"))

    outcome = _call(upstream, retry_config, upstream_config, sleeper)

    assert isinstance(outcome, Failure)
    assert isinstance(outcome.error, UpstreamError)
    assert isinstance(outcome.error.cause, httpx.ConnectError)


def test_transport_error_mentioning_rate_limit_is_throttled(retry_config, upstream_config, sleeper):
    upstream = Upstream(httpx.RemoteProtocolError("HTTP/1.1 429 Too Many Requests"))

    outcome = _call(upstream, retry_config, upstream_config, sleeper)

    assert isinstance(outcome, Throttled)
    assert isinstance(outcome.error.cause, httpx.RemoteProtocolError)


def test_timeout_is_failure(retry_config, upstream_config, sleeper):
    upstream = Upstream(httpx.ReadTimeout("timed out"))

    outcome = _call(upstream, retry_config, upstream_config, sleeper)

    assert isinstance(outcome, Failure)


def test_malformed_body_is_failure(retry_config, upstream_config, sleeper):
    async def handler(request):
        return httpx.Response(200, text="<html>not json</html>")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    fetcher = RetryingFetcher(upstream_config, retry_config, client=client, sleep=sleeper)

    outcome = asyncio.run(fetcher.call(FORECAST_URL, PARAMS))

    assert isinstance(outcome, Failure)
    assert "Malformed" in str(outcome.error)


def test_injected_client_is_not_closed(retry_config, upstream_config, sleeper):
    client = Upstream(200).client()
    fetcher = RetryingFetcher(upstream_config, retry_config, client=client, sleep=sleeper)

    asyncio.run(fetcher.close())

    assert not client.is_closed


def test_looks_throttled_matches_known_indicators():
    assert looks_throttled("Server said 429")
    assert looks_throttled("Too Many Requests")
    assert looks_throttled("RATE LIMIT reached")
    assert not looks_throttled("API returned status code: 503")
