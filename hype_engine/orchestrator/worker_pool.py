"""
HypeMeter — Worker Pool
─────────────────────────
Pull-based pool: a shared cursor over the ticker list and
min(max_concurrency, len(tickers)) workers, each claiming the next
unclaimed ticker until none remain. Claiming never awaits, so under
asyncio no two workers can take the same ticker.

The cap exists for upstream per-IP rate limits (HTTP 429 otherwise).
Work functions write into a by-ticker mapping, so completion order
does not matter.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

log = logging.getLogger("hm.pool")

DEFAULT_MAX_CONCURRENCY = 4


async def run_pool(
    tickers: Sequence[str],
    work: Callable[[str], Awaitable[None]],
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> int:
    """Run `work(ticker)` for every ticker. Returns the worker count used."""
    if not tickers:
        return 0
    cursor = 0

    async def worker():
        nonlocal cursor
        while cursor < len(tickers):
            ticker = tickers[cursor]
            cursor += 1
            await work(ticker)

    n_workers = min(max(1, max_concurrency), len(tickers))
    await asyncio.gather(*(worker() for _ in range(n_workers)))
    log.debug(f"Pool drained {len(tickers)} tickers with {n_workers} workers")
    return n_workers
