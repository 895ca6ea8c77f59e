"""
HypeMeter — API Handlers
──────────────────────────
Request handling behind the FastAPI routes in app.py: parameter
parsing, calling the service, and mapping failures to status codes.

Every handler returns (status_code, body) and never raises:
  400  missing / malformed / too many tickers
  500  missing credential               {error}
  500  anything else that went wrong    {error, detail}
Upstream failures do not show up here at all; they were already turned
into per-ticker fallbacks inside the sources.
"""

import logging
from typing import Awaitable, Callable, Optional, Tuple

from hype_engine.errors import ConfigError
from hype_engine.models.payloads import (
    mention_record, render_hype, render_mentions, render_quotes,
)
from hype_sources.orchestrator import HypeService
from hype_sources.tickers import TickerError, parse_tickers

log = logging.getLogger("hm.api")

DEFAULT_WINDOW = 60      # minutes
MIN_WINDOW     = 1
MAX_WINDOW     = 1440    # one day; Reddit search cannot see further back

Response = Tuple[int, dict]


def parse_window(raw: Optional[str]) -> int:
    """Minutes, clamped to [1, 1440]. Missing, zero or garbage -> 60."""
    try:
        value = int(float(raw)) if raw not in (None, "") else 0
    except (TypeError, ValueError, OverflowError):
        value = 0
    if not value:
        return DEFAULT_WINDOW
    return max(MIN_WINDOW, min(MAX_WINDOW, value))


def error_body(error: str, detail: Optional[str] = None) -> dict:
    body = {"error": error}
    if detail is not None:
        body["detail"] = detail
    return body


async def _guarded(label: str, call: Callable[[], Awaitable[dict]]) -> Response:
    try:
        return 200, await call()
    except ConfigError as e:
        log.error(f"{label}: {e}")
        return 500, error_body(str(e))
    except Exception as e:
        log.exception(f"{label} failed: {e}")
        return 500, error_body(f"{label} failed", str(e))


async def mentions_response(service: HypeService, tickers: Optional[str],
                            window: Optional[str] = None) -> Response:
    try:
        ticker_list = parse_tickers(tickers or "", service.settings.max_tickers)
    except TickerError as e:
        return 400, error_body(str(e))
    minutes = parse_window(window)

    async def call():
        results = await service.mentions(ticker_list, minutes)
        return render_mentions(results, service.settings.mentions_backend)

    return await _guarded("mentions", call)


async def quotes_response(service: HypeService, tickers: Optional[str]) -> Response:
    try:
        ticker_list = parse_tickers(tickers or "", service.settings.max_tickers)
    except TickerError as e:
        return 400, error_body(str(e))

    async def call():
        results = await service.quotes(ticker_list)
        return render_quotes(results, service.settings.quotes_shape)

    return await _guarded("quotes", call)


async def hype_response(service: HypeService, tickers: Optional[str],
                        window: Optional[str] = None) -> Response:
    try:
        ticker_list = parse_tickers(tickers or "", service.settings.max_tickers)
    except TickerError as e:
        return 400, error_body(str(e))
    minutes = parse_window(window)

    async def call():
        return render_hype(await service.hype(ticker_list, minutes))

    return await _guarded("hype", call)


async def reddit_probe_response(service: HypeService, ticker: str,
                                window: Optional[str] = None) -> Response:
    """Debug view of one ticker through the Reddit source, whatever the configured backend."""
    try:
        symbol = parse_tickers(ticker, 1)[0]
    except TickerError as e:
        return 400, {"success": False, "error": str(e)}
    minutes = parse_window(window)
    try:
        service.reddit.check_config()
        result = await service.reddit.run(symbol, window=minutes)
    except Exception as e:
        log.exception(f"reddit probe failed for {symbol}: {e}")
        return 500, {"success": False, "error": str(e)}
    return 200, {
        "success": True,
        "ticker":  symbol,
        "window":  minutes,
        "data":    mention_record(result),
        "cached":  result.cached,
    }
