"""
HypeMeter — GDELT News Volume
───────────────────────────────
Mention count = summed TimelineVol buckets for the ticker over the
window, floored and never negative.

The primary query is English-only to cut noise. If it comes back with
zero volume we ask once more without the language filter, so "nobody
wrote about it" and "query too narrow" are not confused.
"""

import logging
import math
import time

from hype_engine.errors import UpstreamError
from hype_sources.base import MentionResult, MentionSource
from hype_sources.tickers import query_terms

log = logging.getLogger("hm.sources.gdelt")

GDELT_DOC_URL = "https://api.gdeltproject.org/api/v2/doc/doc"
LANG_FILTER   = "sourcelang:english"


def build_query(ticker: str, english_only: bool = True) -> str:
    terms = [t if t.isalnum() else f'"{t}"' for t in query_terms(ticker)]
    # "$T" as a bare term is not valid GDELT syntax, so it is always quoted
    query = f"({' OR '.join(terms)})"
    return f"{query} {LANG_FILTER}" if english_only else query


def sum_timeline(payload) -> float:
    """Sum timeline[0].data[*].value; anything malformed counts as 0."""
    if not isinstance(payload, dict):
        return 0.0
    timeline = payload.get("timeline")
    if not isinstance(timeline, list) or not timeline or not isinstance(timeline[0], dict):
        return 0.0
    buckets = timeline[0].get("data")
    if not isinstance(buckets, list):
        return 0.0
    total = 0.0
    for bucket in buckets:
        try:
            value = float((bucket or {}).get("value") or 0)
        except (TypeError, ValueError, AttributeError):
            continue
        if math.isfinite(value):
            total += value
    return total


class GdeltMentions(MentionSource):

    def __init__(self, fetcher, cache, retry=None, clock=time.time):
        super().__init__(fetcher, cache, retry, clock)

    @property
    def name(self) -> str:
        return "gdelt"

    async def _volume(self, query: str, window: int) -> int:
        params = {
            "format":   "json",
            "mode":     "TimelineVol",
            "timespan": f"{window}min",
            "query":    query,
        }
        data = await self.fetcher.fetch_json(GDELT_DOC_URL, params=params, retry=self.retry)
        return max(0, math.floor(sum_timeline(data)))

    async def _fetch(self, ticker: str, window: int = 60, **params) -> MentionResult:
        count = await self._volume(build_query(ticker, english_only=True), window)
        if count == 0:
            log.debug(f"{ticker}: no English volume, broadening query")
            try:
                count = await self._volume(build_query(ticker, english_only=False), window)
            except UpstreamError as e:
                # the primary answer stands
                log.warning(f"{ticker}: broadened GDELT query failed: {e}")
        log.info(f"{ticker}: GDELT volume {count} in last {window}m")
        return self._result(ticker, count, window)
