"""
HypeMeter — Bounded Fetcher
─────────────────────────────
Every outbound HTTP call goes through here.

  - Hard deadline per call: if the response has not arrived when the
    deadline fires, the request is cancelled and UpstreamTimeoutError
    is raised. Each call owns its deadline; siblings are unaffected.
  - fetch_json() maps bad status / non-JSON bodies onto the error
    taxonomy in hype_engine.errors.
  - RetryPolicy drives a bounded retry loop with linear backoff
    (attempt * backoff). Only transient failures are retried.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx

from hype_engine.errors import (
    NetworkError, ParseError, UpstreamError, UpstreamStatusError, UpstreamTimeoutError,
)

log = logging.getLogger("hm.fetcher")

DEFAULT_TIMEOUT = 10.0

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
}


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3        # total attempts, first one included
    backoff:  float = 0.3    # seconds; delay before retry n is n * backoff

    @classmethod
    def none(cls) -> "RetryPolicy":
        return cls(attempts=1, backoff=0.0)

    def delay(self, attempt: int) -> float:
        return attempt * self.backoff

    def should_retry(self, error: UpstreamError) -> bool:
        if isinstance(error, (NetworkError, UpstreamTimeoutError)):
            return True
        if isinstance(error, UpstreamStatusError):
            return error.transient
        return False


def _short(url: str) -> str:
    return url.split("?", 1)[0][:80]


class BoundedFetcher:
    """Wraps one shared httpx.AsyncClient with deadlines and retries."""

    def __init__(self, client: httpx.AsyncClient, timeout: float = DEFAULT_TIMEOUT,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.client  = client
        self.timeout = timeout
        self._sleep  = sleep

    async def fetch(self, url: str, method: str = "GET",
                    timeout: Optional[float] = None, **kwargs) -> httpx.Response:
        deadline = self.timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(
                self.client.request(method, url, timeout=deadline, **kwargs),
                timeout=deadline,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise UpstreamTimeoutError(f"Timeout after {deadline}s", url)
        except httpx.HTTPError as e:
            raise NetworkError(f"{type(e).__name__}: {e}", url)

    async def _fetch_json_once(self, url: str, method: str, timeout: Optional[float],
                               **kwargs) -> Any:
        r = await self.fetch(url, method=method, timeout=timeout, **kwargs)
        if not r.is_success:
            raise UpstreamStatusError(r.status_code, url)
        try:
            return r.json()
        except ValueError:
            raise ParseError("Response body is not JSON", url)

    async def fetch_json(self, url: str, method: str = "GET",
                         timeout: Optional[float] = None,
                         retry: Optional[RetryPolicy] = None, **kwargs) -> Any:
        policy = retry or RetryPolicy.none()
        attempt = 1
        while True:
            try:
                return await self._fetch_json_once(url, method, timeout, **kwargs)
            except UpstreamError as e:
                if attempt >= policy.attempts or not policy.should_retry(e):
                    raise
                wait = policy.delay(attempt)
                log.warning(f"{e} (attempt {attempt}/{policy.attempts}) {_short(url)}, retrying in {wait:.1f}s")
                await self._sleep(wait)
                attempt += 1
