from urllib.parse import parse_qs

import httpx
import pytest

from hype_engine.config import Settings

NOW = 1_700_000_000.0


class FakeClock:
    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class SleepRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float):
        self.calls.append(seconds)


def make_settings(**overrides) -> Settings:
    values = dict(
        finnhub_api_key="test-key",
        retry_backoff=0.0,
        reddit_pause=0.0,
        fetch_timeout=2.0,
        quote_timeout=2.0,
    )
    values.update(overrides)
    return Settings(**values)


def json_response(payload, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json=payload)


def query_of(request: httpx.Request) -> dict:
    return {k: v[0] for k, v in parse_qs(request.url.query.decode()).items()}


def gdelt_payload(*values) -> dict:
    return {"timeline": [{"series": "Volume Intensity",
                          "data": [{"date": "20240101T000000Z", "value": v} for v in values]}]}


def reddit_listing(*posts) -> dict:
    return {"kind": "Listing", "data": {"children": [{"kind": "t3", "data": p} for p in posts]}}


def client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def settings():
    return make_settings()


QUOTES = {
    "NVDA": {"c": 103.2, "pc": 100.0, "v": 2_000_000},
    "AAPL": {"c": 199.0, "pc": 200.0, "v": 500_000},
}
GDELT = {"NVDA": (2, 3), "AAPL": ()}


def upstream(quotes=QUOTES, gdelt=GDELT):
    """One fake internet: GDELT volumes and Finnhub quotes keyed by ticker."""
    def handler(request):
        host = request.url.host
        q = query_of(request)
        if host == "api.gdeltproject.org":
            ticker = q["query"].strip("(").split(" ")[0]
            values = gdelt.get(ticker)
            return httpx.Response(500) if values is None else json_response(gdelt_payload(*values))
        if host == "finnhub.io":
            payload = quotes.get(q["symbol"])
            return httpx.Response(500) if payload is None else json_response(payload)
        return httpx.Response(404)
    return handler
