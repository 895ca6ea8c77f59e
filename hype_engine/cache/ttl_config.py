"""
HypeMeter — TTL Configuration
───────────────────────────────
Single source of truth for cache durations and cache key layout.
Organised by source: how fast the underlying signal changes.
"""

# ── Per-source TTL (seconds) ──────────────────────────────────

TTL = {
    "reddit":  5 * 60,   # subreddit search is slow and rate limited
    "gdelt":   60,       # news timeline buckets refresh every 15 minutes
    "finnhub": 30,       # prices move fastest
}


# ── Cache keys ────────────────────────────────────────────────
# Every parameter that changes the upstream answer must appear in the key.

def key_mentions(source: str, ticker: str, window: int) -> str:
    return f"mentions:{source}:{ticker}:{window}"


def key_quote(ticker: str, with_metrics: bool) -> str:
    return f"quote:finnhub:{ticker}:{'m1' if with_metrics else 'm0'}"
