"""
HypeMeter — Reddit Mentions
─────────────────────────────
Counts ticker mentions across a handful of market subreddits inside a
lookback window.

Reddit search cannot filter tighter than "past day" server-side, so we
ask for the newest 100 posts of the day and drop everything with
created_utc at or before now - window before counting.

Counting: occurrences of TICKER or $TICKER (word-bounded) plus the
company name, in title + selftext, case-insensitive.

Auth: with REDDIT_CLIENT_ID / REDDIT_CLIENT_SECRET set we use an
application-only OAuth token against oauth.reddit.com (much kinder rate
limits); otherwise the public JSON search on www.reddit.com.
"""

import asyncio
import logging
import re
import time
from typing import List, Optional, Tuple

from hype_engine.errors import ParseError, UpstreamError
from hype_engine.orchestrator.fetcher import BROWSER_HEADERS
from hype_sources.base import MentionResult, MentionSource
from hype_sources.tickers import company_name, query_terms

log = logging.getLogger("hm.sources.reddit")

SUBREDDITS      = ["wallstreetbets", "stocks", "investing", "stockmarket"]
PUBLIC_SEARCH   = "https://www.reddit.com/r/{subreddit}/search.json"
OAUTH_SEARCH    = "https://oauth.reddit.com/r/{subreddit}/search"
TOKEN_URL       = "https://www.reddit.com/api/v1/access_token"
SEARCH_LIMIT    = 100
TOKEN_MARGIN_S  = 60     # refresh this long before Reddit says the token expires


def mention_patterns(ticker: str) -> List[re.Pattern]:
    t = re.escape(ticker.upper())
    patterns = [re.compile(rf"(?<![A-Z0-9$])\$?{t}(?![A-Z0-9])")]
    name = company_name(ticker).upper()
    if name != ticker.upper():
        patterns.append(re.compile(rf"(?<![A-Z0-9]){re.escape(name)}(?![A-Z0-9])"))
    return patterns


def count_mentions(posts: list, ticker: str, cutoff_utc: float) -> Tuple[int, int]:
    """Returns (mentions, posts inside the window)."""
    patterns = mention_patterns(ticker)
    mentions = 0
    recent = 0
    for child in posts:
        post = child.get("data") if isinstance(child, dict) else None
        if not isinstance(post, dict):
            continue
        try:
            created = float(post.get("created_utc") or 0)
        except (TypeError, ValueError):
            continue
        if created <= cutoff_utc:
            continue
        recent += 1
        text = f"{post.get('title') or ''} {post.get('selftext') or ''}".upper()
        mentions += sum(len(p.findall(text)) for p in patterns)
    return mentions, recent


class RedditToken:
    """Application-only OAuth token, shared by all workers."""

    def __init__(self, client_id: str, client_secret: str, user_agent: str, clock):
        self.client_id     = client_id
        self.client_secret = client_secret
        self.user_agent    = user_agent
        self._clock        = clock
        self._token: Optional[str] = None
        self._expires_at   = 0.0
        self._lock         = asyncio.Lock()

    async def get(self, fetcher, retry) -> str:
        async with self._lock:
            if self._token and self._clock() < self._expires_at:
                return self._token
            data = await fetcher.fetch_json(
                TOKEN_URL, method="POST", retry=retry,
                auth=(self.client_id, self.client_secret),
                data={"grant_type": "client_credentials"},
                headers={"User-Agent": self.user_agent},
            )
            token = data.get("access_token") if isinstance(data, dict) else None
            if not token:
                raise ParseError(f"Reddit token response had no access_token: {str(data)[:120]}", TOKEN_URL)
            ttl = float(data.get("expires_in") or 3600)
            self._token = token
            self._expires_at = self._clock() + max(0.0, ttl - TOKEN_MARGIN_S)
            log.info(f"Reddit OAuth token acquired (expires in {int(ttl)}s)")
            return token


class RedditMentions(MentionSource):

    def __init__(self, fetcher, cache, settings, retry=None, clock=time.time,
                 sleep=asyncio.sleep, subreddits: Optional[List[str]] = None):
        super().__init__(fetcher, cache, retry, clock)
        self.settings   = settings
        self.subreddits = subreddits or list(SUBREDDITS)
        self._sleep     = sleep
        self._token: Optional[RedditToken] = None

    @property
    def name(self) -> str:
        return "reddit"

    def check_config(self):
        self.settings.reddit_credentials()

    def _oauth(self) -> Optional[RedditToken]:
        creds = self.settings.reddit_credentials()
        if creds is None:
            return None
        if self._token is None:
            self._token = RedditToken(creds[0], creds[1],
                                      self.settings.reddit_user_agent, self._clock)
        return self._token

    def search_query(self, ticker: str) -> str:
        return " OR ".join(t if t.isalnum() else f'"{t}"' for t in query_terms(ticker))

    async def _search(self, subreddit: str, ticker: str) -> list:
        params = {
            "q":           self.search_query(ticker),
            "restrict_sr": 1,
            "sort":        "new",
            "limit":       SEARCH_LIMIT,
            "t":           "day",
        }
        oauth = self._oauth()
        if oauth:
            token = await oauth.get(self.fetcher, self.retry)
            url = OAUTH_SEARCH.format(subreddit=subreddit)
            headers = {"Authorization": f"Bearer {token}",
                       "User-Agent": self.settings.reddit_user_agent}
        else:
            url = PUBLIC_SEARCH.format(subreddit=subreddit)
            headers = dict(BROWSER_HEADERS)

        data = await self.fetcher.fetch_json(url, params=params, headers=headers, retry=self.retry)
        listing = data.get("data") if isinstance(data, dict) else None
        children = listing.get("children") if isinstance(listing, dict) else None
        if not isinstance(children, list):
            raise ParseError("Invalid response structure", url)
        return children

    async def _fetch(self, ticker: str, window: int = 60, **params) -> MentionResult:
        cutoff = self._clock() - window * 60
        total = 0
        failures: List[UpstreamError] = []

        for i, subreddit in enumerate(self.subreddits):
            if i and self.settings.reddit_pause > 0:
                await self._sleep(self.settings.reddit_pause)
            try:
                posts = await self._search(subreddit, ticker)
            except UpstreamError as e:
                log.warning(f"  r/{subreddit} {ticker}: {e}")
                failures.append(e)
                continue
            mentions, recent = count_mentions(posts, ticker, cutoff)
            log.debug(f"  r/{subreddit} {ticker}: {len(posts)} posts, {recent} in window, {mentions} mentions")
            total += mentions

        if failures and len(failures) == len(self.subreddits):
            raise failures[-1]
        log.info(f"{ticker}: {total} Reddit mentions in last {window}m")
        return self._result(ticker, total, window)
