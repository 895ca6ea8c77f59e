"""
HypeMeter Sources
───────────────────
Upstream aggregators (Reddit, GDELT, Finnhub) and the hype combiner.

    from hype_sources import HypeService
    scores = await HypeService(settings, client).hype(["NVDA"], window=60)
"""

from .base import MentionResult, QuoteResult, SourceAggregator
from .orchestrator import HypeService
from .scoring import HypeScore, hype_score

__all__ = ["HypeService", "HypeScore", "hype_score", "MentionResult", "QuoteResult", "SourceAggregator"]
