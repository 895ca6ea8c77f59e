"""
HypeMeter — Tickers
─────────────────────
Ticker parsing for request parameters, and the display names used as
alternate search terms. Search engines upstream match keywords
literally, so "NVIDIA" finds posts that "NVDA" does not.
"""

import re
from typing import List

NAME_BY_TICKER = {
    "NVDA": "NVIDIA",   "AAPL": "Apple",    "MSFT": "Microsoft", "AMZN": "Amazon",
    "GOOGL": "Alphabet", "META": "Meta",    "TSLA": "Tesla",     "AMD":  "AMD",
    "PLTR": "Palantir", "NFLX": "Netflix",  "COIN": "Coinbase",  "GME":  "GameStop",
    "AMC":  "AMC",      "RIVN": "Rivian",   "SNAP": "Snap",      "UBER": "Uber",
    "SPOT": "Spotify",  "SHOP": "Shopify",  "DIS":  "Disney",    "NIO":  "NIO",
}

_TICKER_RE = re.compile(r"^[A-Z0-9][A-Z0-9.\-]{0,9}$")


class TickerError(ValueError):
    """A ticker list that cannot be served (empty, malformed, too long)."""


def parse_tickers(raw: str, max_tickers: int = 50) -> List[str]:
    """'nvda, AAPL,,nvda' -> ['NVDA', 'AAPL']. Raises TickerError."""
    tickers: List[str] = []
    for part in (raw or "").split(","):
        t = part.strip().upper()
        if not t or t in tickers:
            continue
        if not _TICKER_RE.match(t):
            raise TickerError(f"Invalid ticker: {part.strip()}")
        tickers.append(t)
    if not tickers:
        raise TickerError("Tickers parameter is required, e.g. ?tickers=NVDA,AAPL")
    if len(tickers) > max_tickers:
        raise TickerError(f"Maximum {max_tickers} tickers per request")
    return tickers


def company_name(ticker: str) -> str:
    return NAME_BY_TICKER.get(ticker, ticker)


def query_terms(ticker: str) -> List[str]:
    """Ticker, cashtag and company name, without duplicates."""
    terms = [ticker, f"${ticker}"]
    name = company_name(ticker)
    if name.upper() != ticker:
        terms.append(name)
    return terms
