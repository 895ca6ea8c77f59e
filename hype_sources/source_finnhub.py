"""
HypeMeter — Finnhub Quotes
────────────────────────────
One QuoteResult per ticker from two Finnhub endpoints:

  /quote                       c (current), pc (previous close), v (volume)
  /stock/metric?metric=all     average volume, only when relative volume
                               is wanted (compact quotes shape)

The two calls run one after the other, so a worker never has more than
one Finnhub request in flight. A failed metric call only costs us the
relative volume (falls back to 1); a failed or empty quote falls back
the whole ticker.

Needs FINNHUB_API_KEY. Its absence is a ConfigError at request time.
"""

import logging
import math
import time

from hype_engine.cache import key_quote
from hype_engine.errors import ParseError, UpstreamError
from hype_sources.base import (
    DEFAULT_CHANGE_PCT, DEFAULT_VOL_REL, QuoteResult, SourceAggregator,
)
from hype_sources.normalise import (
    compute_chg_pct, compute_vol_rel, pick_avg_volume, to_number,
)
from hype_sources.tickers import company_name

log = logging.getLogger("hm.sources.finnhub")

FINNHUB_API = "https://finnhub.io/api/v1"


class FinnhubQuotes(SourceAggregator):

    def __init__(self, fetcher, cache, settings, retry=None, clock=time.time):
        super().__init__(fetcher, cache, retry, clock)
        self.settings = settings

    @property
    def name(self) -> str:
        return "finnhub"

    def check_config(self):
        self.settings.require_finnhub_key()

    def cache_key(self, ticker: str, with_metrics: bool = False, **params) -> str:
        return key_quote(ticker, with_metrics)

    def fallback(self, ticker: str, error: str, **params) -> QuoteResult:
        return QuoteResult(
            ticker=ticker, name=company_name(ticker),
            current_price=None, previous_close=None,
            change=0.0, change_pct=DEFAULT_CHANGE_PCT,
            volume=0.0, avg_volume=None, vol_rel=DEFAULT_VOL_REL,
            source="error", timestamp=self._clock(), error=error,
        )

    async def _get(self, path: str, params: dict):
        token = self.settings.require_finnhub_key()
        return await self.fetcher.fetch_json(
            f"{FINNHUB_API}{path}", params=params,
            headers={"X-Finnhub-Token": token},
            timeout=self.settings.quote_timeout, retry=self.retry,
        )

    async def _avg_volume(self, ticker: str) -> float:
        try:
            data = await self._get("/stock/metric", {"symbol": ticker, "metric": "all"})
        except UpstreamError as e:
            log.warning(f"{ticker}: Finnhub metrics unavailable ({e}), volRel defaults to {DEFAULT_VOL_REL}")
            return math.nan
        metric = data.get("metric") if isinstance(data, dict) else None
        return pick_avg_volume(metric if isinstance(metric, dict) else None)

    async def _fetch(self, ticker: str, with_metrics: bool = False, **params) -> QuoteResult:
        data = await self._get("/quote", {"symbol": ticker})
        if not isinstance(data, dict):
            raise ParseError("Invalid data from Finnhub", f"{FINNHUB_API}/quote")

        current    = to_number(data.get("c"))
        prev_close = to_number(data.get("pc"))
        volume     = to_number(data.get("v"))
        # Finnhub answers unknown symbols with zeros rather than an error
        if not current or not prev_close or math.isnan(current) or math.isnan(prev_close):
            raise ParseError("Invalid data from Finnhub", f"{FINNHUB_API}/quote")

        avg_volume = await self._avg_volume(ticker) if with_metrics else math.nan
        vol_rel = compute_vol_rel(volume, avg_volume) if with_metrics else DEFAULT_VOL_REL
        change_pct = compute_chg_pct(current, prev_close)

        log.info(f"  {ticker}: ${current} ({change_pct:+.2f}%)")
        return QuoteResult(
            ticker=ticker,
            name=company_name(ticker),
            current_price=current,
            previous_close=prev_close,
            change=current - prev_close,
            change_pct=change_pct,
            volume=volume if math.isfinite(volume) and volume > 0 else 0.0,
            avg_volume=avg_volume if math.isfinite(avg_volume) else None,
            vol_rel=vol_rel,
            source=self.name,
            timestamp=self._clock(),
        )
