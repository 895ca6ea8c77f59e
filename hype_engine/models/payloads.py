"""
HypeMeter — Response Payloads
───────────────────────────────
JSON shapes served by the API. Two front ends consume this service and
each expects its own shape, so mentions and quotes each have two named
renderers picked by deployment config. Field names are part of the
contract; do not rename them.

  mentions  "reddit"   { T: {mentions, window, timestamp, source} }
            "gdelt"    { T: int }
  quotes    "rich"     { T: {symbol, name, currentPrice, previousClose,
                             change, changePercent, volume, timestamp} }
            "compact"  { T: {chgPct, volRel} }
  hype                 { T: {symbol, hypeScore, mentions, price, change,
                             changePercent, volume, name, timestamp} }
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Mapping

from hype_sources.base import MentionResult, QuoteResult
from hype_sources.scoring import HypeScore


def iso_utc(ts: float) -> str:
    """Epoch seconds -> '2024-05-01T12:00:00.000Z'."""
    dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ── Mentions ──────────────────────────────────────────────────
def mention_record(r: MentionResult) -> dict:
    out = {
        "mentions":  r.mentions,
        "window":    r.window,
        "timestamp": iso_utc(r.timestamp),
        "source":    r.source,
    }
    if r.error:
        out["error"] = r.error
    return out


def mention_count(r: MentionResult) -> int:
    return r.mentions


MENTION_SHAPES: Dict[str, Callable[[MentionResult], object]] = {
    "reddit": mention_record,
    "gdelt":  mention_count,
}


# ── Quotes ────────────────────────────────────────────────────
def quote_record(r: QuoteResult) -> dict:
    out = {
        "symbol":        r.ticker,
        "name":          r.name,
        "currentPrice":  r.current_price,
        "previousClose": r.previous_close,
        "change":        r.change,
        "changePercent": r.change_pct,
        "volume":        r.volume,
        "timestamp":     iso_utc(r.timestamp),
    }
    if r.error:
        out["error"] = "Failed to fetch quote data"
    return out


def quote_compact(r: QuoteResult) -> dict:
    return {"chgPct": r.change_pct, "volRel": r.vol_rel}


QUOTE_SHAPES: Dict[str, Callable[[QuoteResult], dict]] = {
    "rich":    quote_record,
    "compact": quote_compact,
}


# ── Hype ──────────────────────────────────────────────────────
def hype_record(s: HypeScore) -> dict:
    return {
        "symbol":        s.ticker,
        "hypeScore":     s.score,
        "mentions":      s.mentions,
        "price":         s.price,
        "change":        s.change,
        "changePercent": s.change_pct,
        "volume":        s.volume,
        "name":          s.name,
        "timestamp":     iso_utc(s.timestamp),
    }


def render_mentions(results: Mapping[str, MentionResult], shape: str) -> dict:
    render = MENTION_SHAPES[shape]
    return {t: render(r) for t, r in results.items()}


def render_quotes(results: Mapping[str, QuoteResult], shape: str) -> dict:
    render = QUOTE_SHAPES[shape]
    return {t: render(r) for t, r in results.items()}


def render_hype(scores: Mapping[str, HypeScore]) -> dict:
    return {t: hype_record(s) for t, s in scores.items()}
