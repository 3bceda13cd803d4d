"""Shared test doubles: fake clock, recording sleep, scripted upstream."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

BASE_URL = "https://api.example.com/v1"
FORECAST_URL = f"{BASE_URL}/forecast"

PARAMS = {
    "latitude": 40.7128,
    "longitude": -74.006,
    "hourly": "temperature_2m",
    "current": "temperature_2m",
    "forecast_days": 1,
}

START = 1_700_000_000.0


class FakeClock:
    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class Upstream:
    """Scripted upstream for httpx.MockTransport.

    Each script item is a status code, a (status, json body) pair or an
    exception instance to raise. The last item repeats once the script
    runs out.
    """

    def __init__(self, *script: Any, delay: float = 0.0) -> None:
        self.script = list(script) or [200]
        self.delay = delay
        self.requests: list[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        index = min(len(self.requests), len(self.script) - 1)
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)

        item = self.script[index]
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, tuple):
            status, body = item
            return httpx.Response(status, json=body)
        if 200 <= item < 300:
            return httpx.Response(item, json={"current": {"temperature_2m": 21.5}, "n": len(self.requests)})
        return httpx.Response(item, text="error")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))
