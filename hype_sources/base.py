"""
HypeMeter — Source Aggregator Base
────────────────────────────────────
All upstream sources inherit from SourceAggregator.

Each source produces one result per ticker:
  - MentionResult: mention count over a lookback window (Reddit, GDELT)
  - QuoteResult:   price change % and relative volume (Finnhub)

The run() method handles caching and error recovery. Whatever goes
wrong upstream, callers get a concrete result back: failures become the
source's fallback built from the defaults below. ConfigError is the one
exception that is re-raised, since no retry on this request can fix it.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Optional

from hype_engine.cache import TTLCache, key_mentions
from hype_engine.errors import ConfigError, UpstreamError
from hype_engine.orchestrator import BoundedFetcher, RetryPolicy

log = logging.getLogger("hm.sources")

# ── Fallback values, declared once ───────────────────────────
DEFAULT_MENTIONS   = 0
DEFAULT_CHANGE_PCT = 0.0
DEFAULT_VOL_REL    = 1.0


@dataclass(frozen=True)
class MentionResult:
    ticker:    str
    mentions:  int
    window:    int                     # minutes
    source:    str                     # "reddit" | "gdelt" | "error"
    timestamp: float
    cached:    bool = False
    error:     Optional[str] = None


@dataclass(frozen=True)
class QuoteResult:
    ticker:         str
    name:           str
    current_price:  Optional[float]
    previous_close: Optional[float]
    change:         float
    change_pct:     float
    volume:         float
    avg_volume:     Optional[float]
    vol_rel:        float
    source:         str                # "finnhub" | "error"
    timestamp:      float
    cached:         bool = False
    error:          Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SourceAggregator(ABC):
    """
    Base class for one upstream source.

    Subclasses implement:
      - name: str property
      - cache_key(ticker, **params)
      - _fetch(ticker, **params) -> result
      - fallback(ticker, error, **params) -> result
    """

    def __init__(self, fetcher: BoundedFetcher, cache: TTLCache,
                 retry: Optional[RetryPolicy] = None, clock=time.time):
        self.fetcher = fetcher
        self.cache   = cache
        self.retry   = retry or RetryPolicy()
        self._clock  = clock

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def cache_key(self, ticker: str, **params) -> str: ...

    @abstractmethod
    async def _fetch(self, ticker: str, **params): ...

    @abstractmethod
    def fallback(self, ticker: str, error: str, **params): ...

    def check_config(self):
        """Raise ConfigError if this source cannot run at all."""

    async def run(self, ticker: str, **params):
        """Public entry point. Returns cached result if fresh enough."""
        key = self.cache_key(ticker, **params)
        cached = self.cache.get(key)
        if cached is not None:
            return replace(cached, cached=True)
        try:
            result = await self._fetch(ticker, **params)
        except ConfigError:
            raise
        except UpstreamError as e:
            log.warning(f"{self.name} failed for {ticker}: {e}")
            return self.fallback(ticker, str(e), **params)
        except Exception as e:
            log.exception(f"{self.name} crashed for {ticker}: {e}")
            return self.fallback(ticker, f"{type(e).__name__}: {e}", **params)
        self.cache.set(key, result)
        return result


class MentionSource(SourceAggregator):
    """Shared plumbing for sources that count mentions over a window."""

    def cache_key(self, ticker: str, window: int = 60, **params) -> str:
        return key_mentions(self.name, ticker, window)

    def fallback(self, ticker: str, error: str, window: int = 60, **params) -> MentionResult:
        return MentionResult(
            ticker=ticker, mentions=DEFAULT_MENTIONS, window=window,
            source="error", timestamp=self._clock(), error=error,
        )

    def _result(self, ticker: str, mentions: int, window: int) -> MentionResult:
        return MentionResult(
            ticker=ticker, mentions=max(0, int(mentions)), window=window,
            source=self.name, timestamp=self._clock(),
        )
