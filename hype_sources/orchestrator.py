"""
HypeMeter — Source Orchestrator
─────────────────────────────────
Fans a ticker list out over one source through the worker pool, and
merges mentions + quotes into hype scores.

Usage in app.py:
    service = HypeService(settings, client)
    scores = await service.hype(["NVDA", "AAPL"], window=60)

The service owns everything stateful: one TTL cache per source, the
bounded fetcher around the shared httpx client, and the source
instances. Create one at startup; it needs no teardown beyond closing
the client.

Isolation is per (source, ticker): every source.run() returns a
concrete result, so one failure never empties another ticker's entry
or another source's column. Output mappings follow request order.
"""

import asyncio
import logging
import time
from typing import Dict, List, Optional

import httpx

from hype_engine.cache import TTL, TTLCache
from hype_engine.config import Settings
from hype_engine.orchestrator import BoundedFetcher, RetryPolicy, run_pool
from hype_sources.base import MentionResult, QuoteResult, SourceAggregator
from hype_sources.scoring import HypeScore, combine
from hype_sources.source_finnhub import FinnhubQuotes
from hype_sources.source_gdelt import GdeltMentions
from hype_sources.source_reddit import RedditMentions

log = logging.getLogger("hm.orchestrator")


class HypeService:

    def __init__(self, settings: Settings, client: httpx.AsyncClient,
                 clock=time.time, cache_clock=time.monotonic, sleep=asyncio.sleep):
        self.settings = settings
        self.fetcher  = BoundedFetcher(client, timeout=settings.fetch_timeout, sleep=sleep)
        self.caches: Dict[str, TTLCache] = {
            name: TTLCache(ttl, settings.cache_max_entries, clock=cache_clock, name=name)
            for name, ttl in TTL.items()
        }
        retry = RetryPolicy(attempts=settings.retry_attempts, backoff=settings.retry_backoff)

        self.reddit  = RedditMentions(self.fetcher, self.caches["reddit"], settings,
                                      retry=retry, clock=clock, sleep=sleep)
        # the broadened second query is GDELT's retry
        self.gdelt   = GdeltMentions(self.fetcher, self.caches["gdelt"],
                                     retry=RetryPolicy.none(), clock=clock)
        self.finnhub = FinnhubQuotes(self.fetcher, self.caches["finnhub"], settings,
                                     retry=retry, clock=clock)

    @property
    def mention_source(self) -> SourceAggregator:
        return self.reddit if self.settings.mentions_backend == "reddit" else self.gdelt

    def cache_size(self) -> int:
        return sum(len(c) for c in self.caches.values())

    async def _fan_out(self, source: SourceAggregator, tickers: List[str], **params) -> dict:
        source.check_config()
        out = {}

        async def work(ticker: str):
            out[ticker] = await source.run(ticker, **params)

        started = time.monotonic()
        await run_pool(tickers, work, self.settings.max_concurrency)
        log.info(f"{source.name}: {len(tickers)} tickers in {time.monotonic() - started:.2f}s")
        return {t: out[t] for t in tickers}

    async def mentions(self, tickers: List[str], window: int = 60) -> Dict[str, MentionResult]:
        return await self._fan_out(self.mention_source, tickers, window=window)

    async def quotes(self, tickers: List[str],
                     with_metrics: Optional[bool] = None) -> Dict[str, QuoteResult]:
        if with_metrics is None:
            with_metrics = self.settings.quotes_shape == "compact"
        return await self._fan_out(self.finnhub, tickers, with_metrics=with_metrics)

    async def hype(self, tickers: List[str], window: int = 60) -> Dict[str, HypeScore]:
        # fail fast on config before spending any upstream calls
        self.mention_source.check_config()
        self.finnhub.check_config()

        log.info(f"Calculating hype for: {', '.join(tickers)}")
        mentions, quotes = await asyncio.gather(
            self.mentions(tickers, window),
            self.quotes(tickers, with_metrics=False),
        )
        scores = {t: combine(t, mentions[t], quotes[t]) for t in tickers}
        for t, s in scores.items():
            log.info(f"  {t}: hype={s.score} mentions={s.mentions} price={s.price}")
        return scores
