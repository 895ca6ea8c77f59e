import asyncio
from collections import Counter

import pytest

from hype_engine.errors import ConfigError
from hype_sources.orchestrator import HypeService

from conftest import QUOTES, client_for, json_response, make_settings, query_of, reddit_listing, upstream


def _service(client, clock, sleeps, **overrides):
    settings = make_settings(mentions_backend="gdelt", **overrides)
    return HypeService(settings, client, clock=clock, sleep=sleeps)


@pytest.mark.asyncio
async def test_hype_scores(clock, sleeps):
    async with client_for(upstream()) as client:
        scores = await _service(client, clock, sleeps).hype(["NVDA", "AAPL"], window=60)

    assert list(scores) == ["NVDA", "AAPL"]
    nvda, aapl = scores["NVDA"], scores["AAPL"]
    assert nvda.score == 34
    assert nvda.mentions == 5
    assert nvda.price == 103.2
    assert nvda.volume == 2_000_000
    assert aapl.score == 7
    assert aapl.mentions == 0
    assert aapl.change_pct == pytest.approx(-0.5)


@pytest.mark.asyncio
async def test_failures_are_isolated(clock, sleeps):
    handler = upstream(quotes={"NVDA": QUOTES["NVDA"]}, gdelt={"AAPL": (4,)})
    async with client_for(handler) as client:
        scores = await _service(client, clock, sleeps).hype(["NVDA", "AAPL"])

    # NVDA lost its mentions, AAPL lost its quote
    assert scores["NVDA"].mentions == 0
    assert scores["NVDA"].price == 103.2
    assert scores["NVDA"].score == 16 + 8
    assert scores["AAPL"].mentions == 4
    assert scores["AAPL"].price is None
    assert scores["AAPL"].volume is None
    assert scores["AAPL"].score == 8


@pytest.mark.asyncio
async def test_mentions_keep_request_order(clock, sleeps):
    tickers = ["TSLA", "AMD", "NVDA", "GME"]
    gdelt = {t: (i + 1,) for i, t in enumerate(tickers)}
    async with client_for(upstream(gdelt=gdelt)) as client:
        results = await _service(client, clock, sleeps).mentions(tickers, 30)

    assert list(results) == tickers
    assert [r.mentions for r in results.values()] == [1, 2, 3, 4]
    assert all(r.window == 30 for r in results.values())


@pytest.mark.asyncio
async def test_concurrency_is_bounded_per_source(clock, sleeps):
    tickers = [f"T{i}" for i in range(12)]
    requested = Counter()
    in_flight = 0
    peak = 0

    async def handler(request):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        requested[query_of(request)["symbol"]] += 1
        await asyncio.sleep(0.01)
        in_flight -= 1
        return json_response({"c": 10.0, "pc": 9.0, "v": 100})

    async with client_for(handler) as client:
        results = await _service(client, clock, sleeps, max_concurrency=4).quotes(tickers)

    assert peak <= 4
    assert requested == Counter({t: 1 for t in tickers})
    assert all(r.ok for r in results.values())


@pytest.mark.asyncio
async def test_compact_shape_fetches_metrics(clock, sleeps):
    paths = []

    def handler(request):
        paths.append(request.url.path)
        if request.url.path.endswith("/stock/metric"):
            return json_response({"metric": {"10DayAverageTradingVolume": 50}})
        return json_response({"c": 10.0, "pc": 9.0, "v": 100})

    async with client_for(handler) as client:
        service = _service(client, clock, sleeps, quotes_shape="compact")
        results = await service.quotes(["NVDA"])

    assert paths == ["/api/v1/quote", "/api/v1/stock/metric"]
    assert results["NVDA"].vol_rel == 2.0


@pytest.mark.asyncio
async def test_cache_shared_across_calls(clock, sleeps):
    calls = []

    def handler(request):
        calls.append(request.url.host)
        return upstream()(request)

    async with client_for(handler) as client:
        service = _service(client, clock, sleeps)
        await service.hype(["NVDA"])
        again = await service.hype(["NVDA"])

    assert again["NVDA"].score == 34
    assert len(calls) == 2
    assert service.cache_size() == 2


@pytest.mark.asyncio
async def test_missing_finnhub_key_fails_before_upstream(clock, sleeps):
    calls = []

    def handler(request):
        calls.append(request)
        return json_response({})

    async with client_for(handler) as client:
        service = _service(client, clock, sleeps, finnhub_api_key=None)
        with pytest.raises(ConfigError):
            await service.hype(["NVDA"])
        with pytest.raises(ConfigError):
            await service.quotes(["NVDA"])

    assert calls == []


@pytest.mark.asyncio
async def test_reddit_backend_selected(clock, sleeps):
    async with client_for(lambda r: json_response(reddit_listing())) as client:
        service = HypeService(make_settings(), client, clock=clock, sleep=sleeps)
        results = await service.mentions(["NVDA"])

    assert service.mention_source is service.reddit
    assert results["NVDA"].source == "reddit"
