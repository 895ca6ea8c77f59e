"""
HypeMeter — Quote Normalisation
─────────────────────────────────
Pure helpers that turn raw Finnhub numbers into the two quote signals:
  - change %        (current vs previous close)
  - relative volume (today vs average, clamped to [0.3, 3])

Every helper returns a finite number. Bad inputs map to the defaults
declared in hype_sources.base.
"""

import math
from typing import Any, Mapping, Optional

from hype_sources.base import DEFAULT_CHANGE_PCT, DEFAULT_VOL_REL

VOL_REL_MIN = 0.3
VOL_REL_MAX = 3.0

# Finnhub /stock/metric keys, most specific window first
AVG_VOLUME_KEYS = (
    "10DayAverageTradingVolume",
    "3MonthAverageTradingVolume",
    "52WeekAverageVolume",
)


def to_number(value: Any, default: float = math.nan) -> float:
    """float(value) if it is finite, else `default`."""
    if isinstance(value, bool):
        return default
    try:
        n = float(value)
    except (TypeError, ValueError):
        return default
    return n if math.isfinite(n) else default


def compute_chg_pct(current: float, prev_close: float) -> float:
    if not math.isfinite(current) or not math.isfinite(prev_close) or prev_close == 0:
        return DEFAULT_CHANGE_PCT
    return (current - prev_close) / prev_close * 100


def compute_vol_rel(today_volume: float, avg_volume: float) -> float:
    if not math.isfinite(today_volume) or today_volume <= 0:
        return DEFAULT_VOL_REL
    if not math.isfinite(avg_volume) or avg_volume <= 0:
        return DEFAULT_VOL_REL
    return max(VOL_REL_MIN, min(VOL_REL_MAX, today_volume / avg_volume))


def pick_avg_volume(metric: Optional[Mapping]) -> float:
    """First finite, non-zero average volume in AVG_VOLUME_KEYS order; NaN if none."""
    for key in AVG_VOLUME_KEYS:
        value = to_number((metric or {}).get(key))
        if math.isfinite(value) and value != 0:
            return value
    return math.nan
