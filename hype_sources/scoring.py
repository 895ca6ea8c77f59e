"""
HypeMeter — Hype Score
────────────────────────
Fixed heuristic, reproduced exactly for output compatibility:

  mentions   min(mentions * 2, 60)
  volume     min(ln(volume / 1e6 + 1) * 15, 20)   positive finite volume only
  price      min(|change %| * 2.5, 20)            finite change only

Sum, round half up, clamp to [0, 100].
"""

import math
import time
from dataclasses import dataclass, field
from typing import Optional

from hype_sources.base import MentionResult, QuoteResult

MENTION_WEIGHT, MENTION_CAP = 2.0, 60.0
VOLUME_WEIGHT,  VOLUME_CAP  = 15.0, 20.0
PRICE_WEIGHT,   PRICE_CAP   = 2.5, 20.0
VOLUME_UNIT = 1_000_000


def mention_component(mentions: int) -> float:
    return min(max(0, mentions) * MENTION_WEIGHT, MENTION_CAP)


def volume_component(volume: Optional[float]) -> float:
    if volume is None or not math.isfinite(volume) or volume <= 0:
        return 0.0
    return min(math.log(volume / VOLUME_UNIT + 1) * VOLUME_WEIGHT, VOLUME_CAP)


def price_component(change_percent: Optional[float]) -> float:
    if change_percent is None or not math.isfinite(change_percent):
        return 0.0
    return min(abs(change_percent) * PRICE_WEIGHT, PRICE_CAP)


def hype_score(mentions: int, volume: Optional[float], change_percent: Optional[float]) -> int:
    total = mention_component(mentions) + volume_component(volume) + price_component(change_percent)
    return max(0, min(100, math.floor(total + 0.5)))


@dataclass(frozen=True)
class HypeScore:
    ticker:     str
    score:      int
    mentions:   int
    price:      Optional[float]
    change:     Optional[float]
    change_pct: Optional[float]
    volume:     Optional[float]
    name:       str
    timestamp:  float = field(default_factory=time.time)


def combine(ticker: str, mention: MentionResult, quote: QuoteResult) -> HypeScore:
    """Merge one ticker's partial results. Failed quotes contribute nothing."""
    if quote.ok:
        price, change, change_pct = quote.current_price, quote.change, quote.change_pct
        volume = quote.volume or None
    else:
        price = change = change_pct = volume = None
    return HypeScore(
        ticker=ticker,
        score=hype_score(mention.mentions, volume, change_pct),
        mentions=mention.mentions,
        price=price,
        change=change,
        change_pct=change_pct,
        volume=volume,
        name=quote.name or ticker,
    )
